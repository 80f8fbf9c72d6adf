"""
Customer record store.

All statements against the customers table go through CustomerStore. Reads
return transient Customer values; writes raise typed errors from
app.crm.errors instead of leaking SQLAlchemy exceptions to the handlers.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy import or_
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.crm.db import make_sessionmaker
from app.crm.errors import MalformedInputError, NotFoundError, StatementError
from app.crm.models import CustomerRecord

logger = logging.getLogger(__name__)


def birth_date_text(value: Any) -> str:
    """Date-only display form of a stored birth date (first 10 characters)."""
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        value = value.isoformat()
    return str(value)[0:10]


@dataclass(frozen=True)
class Customer:
    first_name: str
    last_name: str
    birth_date: str
    gender: str
    email: str
    address: str
    id: int | None = None

    @classmethod
    def from_record(cls, row: CustomerRecord) -> "Customer":
        return cls(
            id=row.id,
            first_name=row.first_name,
            last_name=row.last_name,
            birth_date=birth_date_text(row.birth_date),
            gender=row.gender,
            email=row.email,
            address=row.address,
        )

    def column_values(self) -> dict[str, Any]:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "birth_date": parse_birth_date(self.birth_date),
            "gender": self.gender,
            "email": self.email,
            "address": self.address,
        }


def parse_birth_date(value: str | None) -> datetime | None:
    value = (value or "").strip()
    if not value:
        return None
    try:
        return datetime.strptime(value[0:10], "%Y-%m-%d")
    except ValueError as e:
        raise MalformedInputError(f"birth date {value!r} is not YYYY-MM-DD") from e


class CustomerStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._sessionmaker: sessionmaker[Session] = make_sessionmaker(engine)

    def _fetch(self, query) -> list[Customer]:
        try:
            rows = query.all()
        except SQLAlchemyError as e:
            raise StatementError(f"customer query failed: {e}") from e
        return [Customer.from_record(r) for r in rows]

    def list_all(self) -> list[Customer]:
        with self._sessionmaker() as s:
            return self._fetch(s.query(CustomerRecord).order_by(CustomerRecord.id.asc()))

    def find_by_names(self, tokens: Sequence[str]) -> list[Customer]:
        """
        Match the first token against first_name OR the second against last_name.

        Fewer than two tokens is rejected as malformed input rather than
        guessing a missing last name.
        """
        if len(tokens) < 2:
            raise MalformedInputError(f"search needs a first and a last name, got {len(tokens)} token(s)")
        first, last = tokens[0], tokens[1]
        with self._sessionmaker() as s:
            query = (
                s.query(CustomerRecord)
                .filter(or_(CustomerRecord.first_name == first, CustomerRecord.last_name == last))
                .order_by(CustomerRecord.id.asc())
            )
            return self._fetch(query)

    def find_by_id(self, customer_id: int) -> Customer | None:
        with self._sessionmaker() as s:
            try:
                row = s.query(CustomerRecord).filter(CustomerRecord.id == customer_id).one_or_none()
            except SQLAlchemyError as e:
                raise StatementError(f"customer lookup failed: {e}", customer_id=customer_id) from e
            return Customer.from_record(row) if row else None

    def create_customer(self, customer: Customer) -> int:
        """Insert one row; the database assigns the id, which is returned."""
        values = customer.column_values()
        with self._sessionmaker() as s:
            row = CustomerRecord(**values)
            s.add(row)
            try:
                s.commit()
            except SQLAlchemyError as e:
                s.rollback()
                raise StatementError(f"customer insert failed: {e}") from e
            logger.info("Created customer id=%s", row.id)
            return row.id

    def update_customer(self, customer: Customer) -> None:
        """
        Overwrite every mutable column of an existing customer in one transaction.

        Statement failure rolls back and raises StatementError. No matching row
        rolls back and raises NotFoundError. A failed commit also raises
        StatementError; it never takes the process down.
        """
        if customer.id is None or customer.id <= 0:
            raise MalformedInputError("customer id must be a positive integer")
        values = customer.column_values()
        with self._sessionmaker() as s:
            try:
                matched = (
                    s.query(CustomerRecord)
                    .filter(CustomerRecord.id == customer.id)
                    .update(values, synchronize_session=False)
                )
            except SQLAlchemyError as e:
                s.rollback()
                logger.warning("Rolled back update of customer id=%s: %s", customer.id, e)
                raise StatementError(f"customer update failed: {e}", customer_id=customer.id) from e
            if matched == 0:
                s.rollback()
                raise NotFoundError(f"customer {customer.id} does not exist", customer_id=customer.id)
            try:
                s.commit()
            except SQLAlchemyError as e:
                s.rollback()
                logger.error("Commit failed for customer id=%s: %s", customer.id, e)
                raise StatementError(f"commit failed: {e}", customer_id=customer.id) from e
