"""
SqlAlchemyPersistenceAdapter -- relational store for the kernel state.

Responsibility:
    Maps immutable domain snapshots to ORM rows and back.  ``save_all``
    replaces the full stored state inside one database transaction, so a
    crash mid-save leaves the previous state intact.

Architecture position:
    Kernel > Persistence.  Imports from db/, models/ and domain/.

Failure modes:
    - SQLAlchemyError from ``save_all`` propagates after rollback; the
      engine wraps it in PersistenceError.
    - ValueError on load if a stored row violates a domain invariant
      (e.g. an item whose total no longer equals quantity x price).
"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine

from invoice_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    session_scope,
)
from invoice_kernel.domain.catalog import Product
from invoice_kernel.domain.invoice import (
    Approval,
    ApprovalRole,
    Invoice,
    InvoiceApprovals,
    InvoiceItem,
    InvoiceStatus,
    Rejection,
    SyncStatus,
)
from invoice_kernel.domain.ledger import LedgerEntry, LedgerEntryType
from invoice_kernel.logging_config import get_logger
from invoice_kernel.models import (
    InvoiceApprovalModel,
    InvoiceItemModel,
    InvoiceModel,
    LedgerEntryModel,
    ProductModel,
)

logger = get_logger("persistence.sql")


# ---------------------------------------------------------------------------
# Row <-> domain mapping
# ---------------------------------------------------------------------------


def _product_to_row(product: Product, position: int) -> ProductModel:
    return ProductModel(
        id=product.id,
        position=position,
        name=product.name,
        price=product.price,
        stock=product.stock,
        reorder_level=product.reorder_level,
        category=product.category,
    )


def _product_from_row(row: ProductModel) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        price=row.price,
        stock=row.stock,
        reorder_level=row.reorder_level,
        category=row.category,
    )


def _invoice_to_row(invoice: Invoice, position: int) -> InvoiceModel:
    row = InvoiceModel(
        id=invoice.id,
        position=position,
        customer_name=invoice.customer_name,
        date=invoice.date,
        total_amount=invoice.total_amount,
        royalty_fee=invoice.royalty_fee,
        net_revenue=invoice.net_revenue,
        status=invoice.status.value,
        synchronization_status=(
            invoice.synchronization_status.value
            if invoice.synchronization_status is not None
            else None
        ),
    )
    if invoice.rejection is not None:
        row.rejected_role = invoice.rejection.role.value
        row.rejected_by = invoice.rejection.rejected_by
        row.rejected_at = invoice.rejection.rejected_at
        row.rejection_reason = invoice.rejection.reason

    row.items = [
        InvoiceItemModel(
            line_no=line_no,
            product_id=item.product_id,
            product_name=item.product_name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total=item.total,
        )
        for line_no, item in enumerate(invoice.items, start=1)
    ]
    row.approvals = [
        InvoiceApprovalModel(
            role=role.value,
            approved_by=approval.approved_by,
            approved_at=approval.approved_at,
            signature=approval.signature,
        )
        for role in ApprovalRole
        if (approval := invoice.approvals.get(role)) is not None
    ]
    return row


def _invoice_from_row(row: InvoiceModel) -> Invoice:
    approvals = InvoiceApprovals()
    for approval_row in row.approvals:
        approvals = approvals.with_approval(
            ApprovalRole(approval_row.role),
            Approval(
                approved_by=approval_row.approved_by,
                approved_at=approval_row.approved_at,
                signature=approval_row.signature,
            ),
        )

    rejection = None
    if row.rejected_by is not None:
        rejection = Rejection(
            role=ApprovalRole(row.rejected_role),
            rejected_by=row.rejected_by,
            rejected_at=row.rejected_at,
            reason=row.rejection_reason,
        )

    return Invoice(
        id=row.id,
        customer_name=row.customer_name,
        date=row.date,
        items=tuple(
            InvoiceItem(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total=item.total,
            )
            for item in row.items
        ),
        total_amount=row.total_amount,
        royalty_fee=row.royalty_fee,
        net_revenue=row.net_revenue,
        status=InvoiceStatus(row.status),
        approvals=approvals,
        synchronization_status=(
            SyncStatus(row.synchronization_status)
            if row.synchronization_status is not None
            else None
        ),
        rejection=rejection,
    )


def _entry_to_row(entry: LedgerEntry, position: int) -> LedgerEntryModel:
    return LedgerEntryModel(
        id=entry.id,
        position=position,
        date=entry.date,
        invoice_id=entry.invoice_id,
        description=entry.description,
        debit=entry.debit,
        credit=entry.credit,
        type=entry.type.value,
    )


def _entry_from_row(row: LedgerEntryModel) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        date=row.date,
        invoice_id=row.invoice_id,
        description=row.description,
        debit=row.debit,
        credit=row.credit,
        type=LedgerEntryType(row.type),
    )


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------


class SqlAlchemyPersistenceAdapter:
    """
    Relational PersistenceAdapter.

    Contract:
        Tables are created on construction if missing.  Every load runs
        in its own short session and returns domain snapshots, never ORM
        instances.
    """

    def __init__(self, engine: Engine):
        self._engine = engine
        self._factory = get_session_factory(engine)
        create_tables(engine)

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> SqlAlchemyPersistenceAdapter:
        return cls(init_engine_from_url(database_url, echo=echo))

    @property
    def engine(self) -> Engine:
        return self._engine

    def load_products(self) -> Sequence[Product]:
        with session_scope(self._factory) as session:
            rows = session.scalars(select(ProductModel).order_by(ProductModel.position))
            return tuple(_product_from_row(row) for row in rows)

    def load_invoices(self) -> Sequence[Invoice]:
        with session_scope(self._factory) as session:
            rows = session.scalars(select(InvoiceModel).order_by(InvoiceModel.position))
            return tuple(_invoice_from_row(row) for row in rows)

    def load_ledger(self) -> Sequence[LedgerEntry]:
        with session_scope(self._factory) as session:
            rows = session.scalars(
                select(LedgerEntryModel).order_by(LedgerEntryModel.position)
            )
            return tuple(_entry_from_row(row) for row in rows)

    def save_all(
        self,
        invoices: Sequence[Invoice],
        products: Sequence[Product],
        ledger: Sequence[LedgerEntry],
    ) -> None:
        """Replace the stored state with the given sequences, atomically."""
        with session_scope(self._factory) as session:
            for model in (
                LedgerEntryModel,
                InvoiceApprovalModel,
                InvoiceItemModel,
                InvoiceModel,
                ProductModel,
            ):
                session.execute(delete(model))

            session.add_all(_product_to_row(p, i) for i, p in enumerate(products))
            session.add_all(_invoice_to_row(inv, i) for i, inv in enumerate(invoices))
            session.add_all(_entry_to_row(e, i) for i, e in enumerate(ledger))

        logger.debug(
            "state_saved",
            extra={
                "invoice_count": len(invoices),
                "product_count": len(products),
                "ledger_count": len(ledger),
            },
        )
