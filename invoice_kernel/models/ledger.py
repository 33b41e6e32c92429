"""
Module: invoice_kernel.models.ledger
Responsibility: ORM persistence for ledger entries.

Invariants enforced:
    - Non-negative debit/credit stored as exact decimal strings.
    - ``position`` preserves append order across reloads.
"""

import datetime as dt
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from invoice_kernel.db.base import Base, DecimalString


class LedgerEntryModel(Base):
    __tablename__ = "ledger_entries"

    __table_args__ = (
        CheckConstraint(
            "type IN ('REVENUE', 'ROYALTY', 'EXPENSE')",
            name="ck_ledger_entries_valid_type",
        ),
        Index("ix_ledger_entries_invoice", "invoice_id"),
    )

    id: Mapped[str] = mapped_column(String(80), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    invoice_id: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    debit: Mapped[Decimal] = mapped_column(DecimalString(), nullable=False)
    credit: Mapped[Decimal] = mapped_column(DecimalString(), nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
