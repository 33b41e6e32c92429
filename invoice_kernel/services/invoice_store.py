"""
InvoiceStore -- owner of Invoice records.

Responsibility:
    Keeps invoices in canonical insertion order and exposes the single
    write path (``update``) used by the workflow engine.

Architecture position:
    Kernel > Services.  Invoices are priced from the Catalog by the
    engine before they reach ``create``; the store itself holds no
    catalog reference.

Invariants enforced:
    - Invoice ids are unique.
    - Invoices are never removed; rejected invoices stay as terminal
      audit records.
    - Every ``update`` must be followed by a persistence flush; the
      engine guarantees this by only calling it inside a transaction.

Failure modes:
    - InvoiceNotFoundError on unknown ids.
    - ValueError on duplicate id at ``create``.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Iterable

from invoice_kernel.domain.invoice import Invoice, InvoiceApprovals, InvoiceStatus
from invoice_kernel.exceptions import InvoiceNotFoundError

InvoiceMutator = Callable[[Invoice], Invoice]


class InvoiceStore:
    """Invoices in insertion order, indexed by id."""

    def __init__(self, invoices: Iterable[Invoice] = ()):
        self._order: list[str] = []
        self._invoices: dict[str, Invoice] = {}
        for invoice in invoices:
            self._insert(invoice)

    def _insert(self, invoice: Invoice) -> None:
        if invoice.id in self._invoices:
            raise ValueError(f"Duplicate invoice id: {invoice.id}")
        self._order.append(invoice.id)
        self._invoices[invoice.id] = invoice

    def create(self, invoice: Invoice) -> Invoice:
        """
        Append a new invoice in PENDING_APPROVAL with no approvals.

        Whatever status/approvals the caller passed are reset.
        """
        stored = replace(
            invoice,
            status=InvoiceStatus.PENDING_APPROVAL,
            approvals=InvoiceApprovals(),
            synchronization_status=None,
            rejection=None,
        )
        self._insert(stored)
        return stored

    def find(self, invoice_id: str) -> Invoice:
        try:
            return self._invoices[invoice_id]
        except KeyError:
            raise InvoiceNotFoundError(invoice_id) from None

    def update(self, invoice_id: str, mutator: InvoiceMutator) -> Invoice:
        """Replace the invoice with ``mutator(current)`` and return it."""
        current = self.find(invoice_id)
        updated = mutator(current)
        if updated.id != invoice_id:
            raise ValueError(f"Mutator changed invoice id {invoice_id} -> {updated.id}")
        self._invoices[invoice_id] = updated
        return updated

    def all(self) -> tuple[Invoice, ...]:
        return tuple(self._invoices[i] for i in self._order)

    def ids(self) -> tuple[str, ...]:
        return tuple(self._order)

    # Transaction support

    def snapshot(self) -> tuple[list[str], dict[str, Invoice]]:
        return list(self._order), dict(self._invoices)

    def restore(self, snapshot: tuple[list[str], dict[str, Invoice]]) -> None:
        order, invoices = snapshot
        self._order = list(order)
        self._invoices = dict(invoices)
