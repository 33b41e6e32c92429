"""
Role work queues.

Which invoices are waiting on a given approver:

    ACCOUNTS -> PENDING_APPROVAL, or APPROVED_STOCK without accounts sign-off
    STOCK    -> PENDING_APPROVAL, or APPROVED_ACCOUNTS without stock sign-off
"""

from __future__ import annotations

from typing import Iterable

from invoice_kernel.domain.invoice import ApprovalRole, Invoice, InvoiceStatus

_WAITING_STATUSES: dict[ApprovalRole, frozenset[InvoiceStatus]] = {
    ApprovalRole.ACCOUNTS: frozenset({
        InvoiceStatus.PENDING_APPROVAL,
        InvoiceStatus.APPROVED_STOCK,
    }),
    ApprovalRole.STOCK: frozenset({
        InvoiceStatus.PENDING_APPROVAL,
        InvoiceStatus.APPROVED_ACCOUNTS,
    }),
}


def pending_for_role(invoices: Iterable[Invoice], role: ApprovalRole) -> tuple[Invoice, ...]:
    """Invoices awaiting ``role``'s approval, newest first."""
    waiting = tuple(
        invoice
        for invoice in invoices
        if invoice.status in _WAITING_STATUSES[role]
        and not invoice.approvals.is_approved(role)
    )
    return tuple(reversed(waiting))
