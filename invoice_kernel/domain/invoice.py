"""
Invoice domain types (``invoice_kernel.domain.invoice``).

Responsibility
--------------
Pure value objects for invoices, their line items and their per-role
approval records, plus ``price_order`` which turns an order into a
priced, immutable ``Invoice``.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  May import
only from ``domain/`` and ``exceptions``.

Invariants enforced
-------------------
* Items are a point-in-time snapshot: product name and unit price are
  copied at creation and never refreshed from the catalog.
* ``total_amount == sum(item.total)``,
  ``royalty_fee == round_money(total_amount * 0.15)``,
  ``net_revenue == total_amount - royalty_fee``.  Computed once in
  ``price_order`` and never recomputed.
* At most one ``Approval`` per role.  A missing record (``None``) means
  "not yet approved"; there is no ``approved=False`` record.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, Sequence

from invoice_kernel.domain.catalog import Product
from invoice_kernel.domain.values import ZERO, royalty_for
from invoice_kernel.exceptions import ValidationError


class InvoiceStatus(str, Enum):
    """Invoice lifecycle states."""

    DRAFT = "DRAFT"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED_ACCOUNTS = "APPROVED_ACCOUNTS"
    APPROVED_STOCK = "APPROVED_STOCK"
    FINALIZED = "FINALIZED"
    REJECTED = "REJECTED"


class ApprovalRole(str, Enum):
    """Roles whose independent sign-off is required to finalize."""

    ACCOUNTS = "accounts"
    STOCK = "stock"


class SyncStatus(str, Enum):
    """Outcome of the best-effort external synchronization."""

    PENDING = "PENDING"
    SYNCED = "SYNCED"
    FAILED = "FAILED"


# =========================================================================
# Approval records
# =========================================================================


@dataclass(frozen=True)
class Approval:
    """
    A recorded sign-off.

    ``signature`` is an opaque placeholder token, not a cryptographic
    signature, and must never be treated as authentication evidence.
    """

    approved_by: str
    approved_at: datetime
    signature: str

    @property
    def approved(self) -> bool:
        return True


@dataclass(frozen=True)
class InvoiceApprovals:
    """Approval records keyed by role.  Absent roles are ``None``."""

    accounts: Approval | None = None
    stock: Approval | None = None

    def get(self, role: ApprovalRole) -> Approval | None:
        if role is ApprovalRole.ACCOUNTS:
            return self.accounts
        return self.stock

    def is_approved(self, role: ApprovalRole) -> bool:
        return self.get(role) is not None

    def with_approval(self, role: ApprovalRole, approval: Approval) -> InvoiceApprovals:
        """Record (or overwrite) the approval for ``role``."""
        if role is ApprovalRole.ACCOUNTS:
            return replace(self, accounts=approval)
        return replace(self, stock=approval)

    @property
    def complete(self) -> bool:
        return self.accounts is not None and self.stock is not None


@dataclass(frozen=True)
class Rejection:
    """Audit record of a rejection.  Rejection is irreversible."""

    role: ApprovalRole
    rejected_by: str
    rejected_at: datetime
    reason: str | None = None


# =========================================================================
# Items and invoices
# =========================================================================


@dataclass(frozen=True)
class OrderLine:
    """A requested (product, quantity) pair on a sales order."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class InvoiceItem:
    """Priced line item.  ``total`` must equal ``quantity * unit_price``."""

    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    total: Decimal

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError(f"Item {self.product_id} quantity must be positive: {self.quantity}")
        if self.total != self.quantity * self.unit_price:
            raise ValueError(
                f"Item {self.product_id} total {self.total} != "
                f"{self.quantity} x {self.unit_price}"
            )

    @classmethod
    def from_product(cls, product: Product, quantity: int) -> InvoiceItem:
        return cls(
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            unit_price=product.price,
            total=product.price * quantity,
        )


@dataclass(frozen=True)
class Invoice:
    """Immutable invoice snapshot.  Transitions produce new snapshots."""

    id: str
    customer_name: str
    date: date
    items: tuple[InvoiceItem, ...]
    total_amount: Decimal
    royalty_fee: Decimal
    net_revenue: Decimal
    status: InvoiceStatus = InvoiceStatus.PENDING_APPROVAL
    approvals: InvoiceApprovals = InvoiceApprovals()
    synchronization_status: SyncStatus | None = None
    rejection: Rejection | None = None

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    def required_quantities(self) -> dict[str, int]:
        """Units needed per product, summed across repeated lines."""
        needed: dict[str, int] = {}
        for item in self.items:
            needed[item.product_id] = needed.get(item.product_id, 0) + item.quantity
        return needed


def invoice_totals(items: Iterable[InvoiceItem]) -> tuple[Decimal, Decimal, Decimal]:
    """(total_amount, royalty_fee, net_revenue) for a set of priced items."""
    total_amount = sum((item.total for item in items), ZERO)
    royalty_fee = royalty_for(total_amount)
    return total_amount, royalty_fee, total_amount - royalty_fee


def _validate_order(customer_name: str, lines: Sequence[tuple[Product, int]]) -> None:
    if not isinstance(customer_name, str) or not customer_name.strip():
        raise ValidationError("customer_name", "must be a non-empty string")
    if not lines:
        raise ValidationError("items", "at least one line item is required")
    for product, quantity in lines:
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError(
                "quantity", f"{product.id}: must be an integer, got {quantity!r}"
            )
        if quantity <= 0:
            raise ValidationError("quantity", f"{product.id}: must be positive, got {quantity}")


def price_order(
    invoice_id: str,
    customer_name: str,
    issued_on: date,
    lines: Sequence[tuple[Product, int]],
) -> Invoice:
    """
    Price an order against catalog snapshots and build a pending invoice.

    Preconditions:
        ``lines`` holds (product snapshot, quantity) pairs already resolved
        from the catalog.

    Raises:
        ValidationError: blank customer, empty order, non-positive or
            non-integer quantity.
    """
    _validate_order(customer_name, lines)
    items = tuple(InvoiceItem.from_product(product, qty) for product, qty in lines)
    total_amount, royalty_fee, net_revenue = invoice_totals(items)
    return Invoice(
        id=invoice_id,
        customer_name=customer_name.strip(),
        date=issued_on,
        items=items,
        total_amount=total_amount,
        royalty_fee=royalty_fee,
        net_revenue=net_revenue,
    )
