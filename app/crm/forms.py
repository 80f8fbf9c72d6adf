from __future__ import annotations

import logging
from collections.abc import Mapping

from app.crm.errors import MalformedInputError, ValidationError
from app.crm.store import Customer, parse_birth_date
from app.crm.validation import field_errors, validate_form

logger = logging.getLogger(__name__)

# Largest value a BIGINT/SQLite INTEGER primary key can hold.
MAX_CUSTOMER_ID = 2**63 - 1


def parse_customer_id(raw: str | None) -> int:
    raw = (raw or "").strip()
    if not raw:
        raise MalformedInputError("customer id is required")
    # ASCII digits only: int() would also take "+1", "1_0" and non-Latin digits.
    if not (raw.isascii() and raw.isdigit()):
        raise MalformedInputError(f"customer id {raw!r} is not a number")
    customer_id = int(raw)
    if customer_id <= 0:
        raise MalformedInputError(f"customer id {customer_id} must be positive")
    if customer_id > MAX_CUSTOMER_ID:
        raise MalformedInputError(f"customer id {raw} is out of range")
    return customer_id


def customer_from_form(form: Mapping[str, str], *, require_id: bool) -> Customer:
    """
    Decode and validate a submitted customer form.

    The update form posts the id as ``ID``; the create form has none.
    """
    customer_id = parse_customer_id(form.get("ID")) if require_id else None
    customer = Customer(
        id=customer_id,
        first_name=form.get("firstName") or "",
        last_name=form.get("lastName") or "",
        birth_date=(form.get("birthDate") or "").strip(),
        gender=form.get("gender") or "",
        email=form.get("email") or "",
        address=form.get("address") or "",
    )
    fields = (customer.first_name, customer.last_name, customer.gender, customer.address, customer.email)
    if validate_form(*fields):
        reason = "; ".join(f"{e.field}: {e.message}" for e in field_errors(*fields))
        logger.info("Rejected customer form (customer_id=%s): %s", customer_id, reason)
        raise ValidationError(reason, customer_id=customer_id)
    # Surface a bad date as a 400 before anything reaches the database.
    parse_birth_date(customer.birth_date)
    return customer
