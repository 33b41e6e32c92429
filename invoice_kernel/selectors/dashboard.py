"""
Dashboard summary.

Derives headline figures from committed data only: posted revenue and
royalty come from the ledger, never from invoice totals, so the summary
matches what was actually booked.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from invoice_kernel.domain.catalog import Product
from invoice_kernel.domain.invoice import Invoice, InvoiceStatus
from invoice_kernel.domain.ledger import LedgerEntry, LedgerEntryType
from invoice_kernel.domain.values import ZERO

_OPEN_EXCLUDED = frozenset({InvoiceStatus.FINALIZED, InvoiceStatus.REJECTED})


@dataclass(frozen=True)
class DailyRevenue:
    date: date
    net_revenue: Decimal


@dataclass(frozen=True)
class DashboardSummary:
    posted_revenue: Decimal
    posted_royalty: Decimal
    pending_revenue: Decimal
    open_invoice_count: int
    product_count: int
    low_stock: tuple[Product, ...]
    daily_revenue: tuple[DailyRevenue, ...]

    @property
    def low_stock_count(self) -> int:
        return len(self.low_stock)


def low_stock_products(products: Iterable[Product]) -> tuple[Product, ...]:
    """Products at or below their reorder level."""
    return tuple(p for p in products if p.is_low_stock)


def daily_net_revenue(invoices: Iterable[Invoice]) -> tuple[DailyRevenue, ...]:
    totals: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for invoice in invoices:
        if invoice.status is InvoiceStatus.FINALIZED:
            totals[invoice.date] += invoice.net_revenue
    return tuple(DailyRevenue(day, totals[day]) for day in sorted(totals))


def summarize(
    products: Iterable[Product],
    invoices: Iterable[Invoice],
    ledger: Iterable[LedgerEntry],
) -> DashboardSummary:
    products = tuple(products)
    invoices = tuple(invoices)
    ledger = tuple(ledger)

    open_invoices = [i for i in invoices if i.status not in _OPEN_EXCLUDED]
    return DashboardSummary(
        posted_revenue=sum(
            (e.credit for e in ledger if e.type is LedgerEntryType.REVENUE), ZERO
        ),
        posted_royalty=sum(
            (e.credit for e in ledger if e.type is LedgerEntryType.ROYALTY), ZERO
        ),
        pending_revenue=sum((i.net_revenue for i in open_invoices), ZERO),
        open_invoice_count=len(open_invoices),
        product_count=len(products),
        low_stock=low_stock_products(products),
        daily_revenue=daily_net_revenue(invoices),
    )
