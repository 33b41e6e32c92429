"""
Invoice workflow state machine (``invoice_kernel.domain.workflow``).

Pure transition table.  The engine consults it before every mutation;
nothing here touches stores.

    PENDING_APPROVAL --approve(accounts)--> APPROVED_ACCOUNTS
    PENDING_APPROVAL --approve(stock)-----> APPROVED_STOCK
    APPROVED_*       --approve(other)-----> FINALIZED
    any non-terminal --reject-------------> REJECTED

FINALIZED and REJECTED are terminal.  DRAFT is reserved and unused by
current flows.
"""

from __future__ import annotations

from enum import Enum

from invoice_kernel.domain.invoice import InvoiceApprovals, InvoiceStatus


class WorkflowAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    SYNC = "sync"


TERMINAL_STATUSES: frozenset[InvoiceStatus] = frozenset({
    InvoiceStatus.FINALIZED,
    InvoiceStatus.REJECTED,
})

_OPEN_STATUSES: frozenset[InvoiceStatus] = frozenset(InvoiceStatus) - TERMINAL_STATUSES

ALLOWED_FROM: dict[WorkflowAction, frozenset[InvoiceStatus]] = {
    WorkflowAction.APPROVE: _OPEN_STATUSES,
    WorkflowAction.REJECT: _OPEN_STATUSES,
    WorkflowAction.SYNC: frozenset({InvoiceStatus.FINALIZED}),
}


def is_terminal(status: InvoiceStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_apply(action: WorkflowAction, status: InvoiceStatus) -> bool:
    return status in ALLOWED_FROM[action]


def status_after_approval(approvals: InvoiceApprovals) -> InvoiceStatus:
    """
    Status implied by the recorded approvals.

    Returns FINALIZED when both roles have signed; the caller is then
    responsible for running finalization in the same transaction.
    """
    if approvals.complete:
        return InvoiceStatus.FINALIZED
    if approvals.accounts is not None:
        return InvoiceStatus.APPROVED_ACCOUNTS
    if approvals.stock is not None:
        return InvoiceStatus.APPROVED_STOCK
    return InvoiceStatus.PENDING_APPROVAL
