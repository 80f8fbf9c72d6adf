from __future__ import annotations

import re
from dataclasses import dataclass

# Local part of allowed characters, "@", then dot-separated DNS labels of
# 1-63 alphanumerics with hyphens only inside the label.
EMAIL_RE = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

GENDERS = ("Male", "Female")

MAX_NAME_LENGTH = 100
MAX_ADDRESS_LENGTH = 200


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


def _check_length(field: str, value: str, limit: int) -> FieldError | None:
    if not value:
        return FieldError(field, "is required")
    if len(value) > limit:
        return FieldError(field, f"must be at most {limit} characters")
    return None


def field_errors(first_name: str, last_name: str, gender: str, address: str, email: str) -> list[FieldError]:
    errs: list[FieldError] = []
    for err in (
        _check_length("first_name", first_name, MAX_NAME_LENGTH),
        _check_length("last_name", last_name, MAX_NAME_LENGTH),
    ):
        if err:
            errs.append(err)
    if gender not in GENDERS:
        errs.append(FieldError("gender", "must be Male or Female"))
    err = _check_length("address", address, MAX_ADDRESS_LENGTH)
    if err:
        errs.append(err)
    if not EMAIL_RE.fullmatch(email or ""):
        errs.append(FieldError("email", "is not a valid email address"))
    return errs


def validate_form(first_name: str, last_name: str, gender: str, address: str, email: str) -> bool:
    """
    Return True when the record is INVALID.

    Handlers branch on "is invalid"; False means the record may be written.
    """
    return bool(field_errors(first_name, last_name, gender, address, email))
