"""
Error taxonomy for the customer records app.

Every error carries the HTTP status it is surfaced as; the app-level
handler renders only the standard status text for it.
"""

from __future__ import annotations


class CrmError(Exception):
    status_code = 500

    def __init__(self, message: str = "", *, customer_id: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.customer_id = customer_id


class ValidationError(CrmError):
    """A candidate record was rejected by the field validator."""

    status_code = 400


class MalformedInputError(CrmError):
    """A required parameter is missing, empty or cannot be decoded."""

    status_code = 400


class NotFoundError(CrmError):
    status_code = 404


class MethodNotAllowedError(CrmError):
    status_code = 405


class StatementError(CrmError):
    """The record store failed to execute or commit a statement."""

    status_code = 500
