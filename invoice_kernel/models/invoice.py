"""
Module: invoice_kernel.models.invoice
Responsibility: ORM persistence for invoices, their line items and their
    per-role approval records.

Invariants enforced:
    - Status and synchronization status are limited to known values
      (CHECK constraints).
    - At most one approval row per (invoice, role): composite primary key.
    - Items and approvals are owned by their invoice (delete-orphan).
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from invoice_kernel.db.base import Base, DecimalString, UTCDateTime


class InvoiceModel(Base):
    __tablename__ = "invoices"

    __table_args__ = (
        CheckConstraint(
            "status IN ('DRAFT', 'PENDING_APPROVAL', 'APPROVED_ACCOUNTS', "
            "'APPROVED_STOCK', 'FINALIZED', 'REJECTED')",
            name="ck_invoices_valid_status",
        ),
        CheckConstraint(
            "synchronization_status IS NULL OR "
            "synchronization_status IN ('PENDING', 'SYNCED', 'FAILED')",
            name="ck_invoices_valid_sync_status",
        ),
    )

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(DecimalString(), nullable=False)
    royalty_fee: Mapped[Decimal] = mapped_column(DecimalString(), nullable=False)
    net_revenue: Mapped[Decimal] = mapped_column(DecimalString(), nullable=False)
    status: Mapped[str] = mapped_column(String(30), nullable=False)
    synchronization_status: Mapped[str | None] = mapped_column(String(10), nullable=True)

    rejected_role: Mapped[str | None] = mapped_column(String(20), nullable=True)
    rejected_by: Mapped[str | None] = mapped_column(String(200), nullable=True)
    rejected_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    items: Mapped[list[InvoiceItemModel]] = relationship(
        "InvoiceItemModel",
        order_by="InvoiceItemModel.line_no",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    approvals: Mapped[list[InvoiceApprovalModel]] = relationship(
        "InvoiceApprovalModel",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<InvoiceModel {self.id} {self.status}>"


class InvoiceItemModel(Base):
    __tablename__ = "invoice_items"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_invoice_items_positive_quantity"),
    )

    invoice_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("invoices.id", ondelete="CASCADE"), primary_key=True,
    )
    line_no: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[str] = mapped_column(String(50), nullable=False)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(DecimalString(), nullable=False)
    total: Mapped[Decimal] = mapped_column(DecimalString(), nullable=False)


class InvoiceApprovalModel(Base):
    __tablename__ = "invoice_approvals"

    __table_args__ = (
        CheckConstraint("role IN ('accounts', 'stock')", name="ck_invoice_approvals_role"),
    )

    invoice_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("invoices.id", ondelete="CASCADE"), primary_key=True,
    )
    role: Mapped[str] = mapped_column(String(20), primary_key=True)
    approved_by: Mapped[str] = mapped_column(String(200), nullable=False)
    approved_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), nullable=False)
    signature: Mapped[str] = mapped_column(String(100), nullable=False)
