"""
Module: invoice_kernel.db.base
Responsibility: Declarative base and portable column types for the ORM
    tables behind ``SqlAlchemyPersistenceAdapter``.
Architecture position: Kernel > DB.  Lowest-level import target for
    ``models/``.  MUST NOT import from models/, services/ or domain/.

Invariants enforced:
    - Monetary amounts are stored as canonical decimal strings, never as
      floats, so SQLite and PostgreSQL round-trip them exactly.
    - Timestamps are returned timezone-aware (UTC) even on backends that
      drop tzinfo.
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


class DecimalString(TypeDecorator):
    """
    Decimal stored as String(64).

    Guarantees:
        - process_bind_param: Decimal -> str on INSERT/UPDATE.
        - process_result_value: str -> Decimal on SELECT.
    """

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            if not isinstance(value, Decimal):
                raise TypeError(f"DecimalString expects Decimal, got {type(value).__name__}")
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return Decimal(value)
        return None


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime normalized to UTC on the way in and out."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value: datetime | None, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Base(DeclarativeBase):
    """Declarative base for all invoice kernel tables."""
