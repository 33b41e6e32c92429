"""
Ledger domain types (``invoice_kernel.domain.ledger``).

Responsibility
--------------
Defines the append-only ``LedgerEntry`` and the single posting rule used
both by finalization and by startup reconstruction.

Invariants enforced
-------------------
* At most one of ``debit`` / ``credit`` is non-zero; neither is negative.
  A zero-amount entry (both sides 0) is still posted, so a free or
  low-value invoice whose royalty rounds to 0.00 keeps its two lines.
* A finalized invoice posts exactly two entries, REVENUE first, ROYALTY
  second, whose credits sum to the invoice's ``total_amount``.
* Entry ids are derived from the invoice id, so posting the same invoice
  twice yields the same ids.  Replay uses this to stay idempotent.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from invoice_kernel.domain.invoice import Invoice
from invoice_kernel.domain.values import ZERO


class LedgerEntryType(str, Enum):
    REVENUE = "REVENUE"
    ROYALTY = "ROYALTY"
    EXPENSE = "EXPENSE"


@dataclass(frozen=True)
class LedgerEntry:
    """A single write-once accounting line."""

    id: str
    date: date
    invoice_id: str
    description: str
    debit: Decimal
    credit: Decimal
    type: LedgerEntryType

    def __post_init__(self) -> None:
        if self.debit < 0 or self.credit < 0:
            raise ValueError(f"Ledger entry {self.id} amounts must be non-negative")
        if self.debit and self.credit:
            raise ValueError(f"Ledger entry {self.id} cannot carry both a debit and a credit")


def ledger_entry_id(invoice_id: str, position: int) -> str:
    return f"LED-{invoice_id}-{position}"


def build_posting_entries(invoice: Invoice) -> tuple[LedgerEntry, LedgerEntry]:
    """
    Ledger lines for a finalized invoice: REVENUE credit of net revenue,
    then ROYALTY credit of the royalty fee.  Uses the invoice's fixed
    amounts; nothing is recomputed from the catalog.
    """
    revenue = LedgerEntry(
        id=ledger_entry_id(invoice.id, 1),
        date=invoice.date,
        invoice_id=invoice.id,
        description=f"Invoice Revenue - {invoice.customer_name}",
        debit=ZERO,
        credit=invoice.net_revenue,
        type=LedgerEntryType.REVENUE,
    )
    royalty = LedgerEntry(
        id=ledger_entry_id(invoice.id, 2),
        date=invoice.date,
        invoice_id=invoice.id,
        description=f"Royalty Fee 15% - {invoice.customer_name}",
        debit=ZERO,
        credit=invoice.royalty_fee,
        type=LedgerEntryType.ROYALTY,
    )
    return revenue, royalty
