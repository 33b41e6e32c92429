"""
Typed Exception Hierarchy for the Invoice Kernel.

Every error raised by the kernel is a subclass of ``InvoiceKernelError``
and carries:

  1. A ``code`` class attribute (machine-readable, API-safe).
  2. Structured instance attributes (not just a message string).

Callers catch by type, never by parsing messages:

    try:
        engine.approve(invoice_id, ApprovalRole.STOCK, "Steve")
    except InsufficientStockError as e:
        for shortage in e.shortages:
            notify(shortage.product_id, shortage.requested, shortage.available)

Hierarchy:

    InvoiceKernelError
    |
    +-- NotFoundError
    |   +-- InvoiceNotFoundError
    |   +-- ProductNotFoundError
    |
    +-- ValidationError
    +-- InsufficientStockError
    |
    +-- WorkflowError
    |   +-- InvalidTransitionError
    |
    +-- PersistenceError
    +-- SyncError

Recoverability:
    - NotFoundError        -> fatal to the single call, never retried.
    - ValidationError      -> rejected before any state is touched.
    - InsufficientStockError -> recoverable after restocking.
    - PersistenceError     -> the whole operation failed; in-memory state
                              was rolled back.
    - SyncError            -> never reaches engine callers; only degrades
                              ``synchronization_status``.
"""

from __future__ import annotations

from dataclasses import dataclass


class InvoiceKernelError(Exception):
    """Base exception for all invoice kernel errors."""

    code: str = "INVOICE_KERNEL_ERROR"


# Lookup errors


class NotFoundError(InvoiceKernelError):
    """Base exception for unknown identifiers."""

    code: str = "NOT_FOUND"


class InvoiceNotFoundError(NotFoundError):
    """Invoice with given ID was not found."""

    code: str = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_id: str):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice not found: {invoice_id}")


class ProductNotFoundError(NotFoundError):
    """Product with given ID was not found."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


# Input validation


class ValidationError(InvoiceKernelError):
    """Creation input was rejected before any state was touched."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


# Stock


@dataclass(frozen=True)
class StockShortage:
    """One line that cannot be covered by current stock."""

    product_id: str
    requested: int
    available: int


class InsufficientStockError(InvoiceKernelError):
    """
    Stock approval failed its availability check.

    Recoverable: the caller may retry once stock is replenished.
    ``available`` is 0 for products missing from the catalog.
    """

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, invoice_id: str, shortages: tuple[StockShortage, ...]):
        self.invoice_id = invoice_id
        self.shortages = shortages
        detail = ", ".join(
            f"{s.product_id} (requested {s.requested}, available {s.available})"
            for s in shortages
        )
        super().__init__(f"Insufficient stock for invoice {invoice_id}: {detail}")


# Workflow


class WorkflowError(InvoiceKernelError):
    """Base exception for state machine violations."""

    code: str = "WORKFLOW_ERROR"


class InvalidTransitionError(WorkflowError):
    """Action is not permitted from the invoice's current status."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, invoice_id: str, from_status: str, action: str):
        self.invoice_id = invoice_id
        self.from_status = from_status
        self.action = action
        super().__init__(
            f"Cannot {action} invoice {invoice_id} in status {from_status}"
        )


# Infrastructure


class PersistenceError(InvoiceKernelError):
    """The durable store rejected a load or save."""

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Persistence {operation} failed: {reason}")


class SyncError(InvoiceKernelError):
    """External synchronization of a finalized invoice failed."""

    code: str = "SYNC_ERROR"

    def __init__(self, invoice_id: str, reason: str):
        self.invoice_id = invoice_id
        self.reason = reason
        super().__init__(f"Sync failed for invoice {invoice_id}: {reason}")
