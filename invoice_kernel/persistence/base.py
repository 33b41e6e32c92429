"""
PersistenceAdapter contract.

The engine treats the durable store as opaque: it loads three ordered
sequences at startup and overwrites all of them after every mutation.

    load_invoices() -> Sequence[Invoice]      (empty if none stored)
    load_products() -> Sequence[Product]
    load_ledger()   -> Sequence[LedgerEntry]
    save_all(invoices, products, ledger)      full-state overwrite

Adapters may raise any exception from ``save_all``; the engine wraps it
in PersistenceError and rolls back its in-memory state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from invoice_kernel.domain.catalog import Product
from invoice_kernel.domain.invoice import Invoice
from invoice_kernel.domain.ledger import LedgerEntry


class PersistenceAdapter(Protocol):
    def load_invoices(self) -> Sequence[Invoice]: ...

    def load_products(self) -> Sequence[Product]: ...

    def load_ledger(self) -> Sequence[LedgerEntry]: ...

    def save_all(
        self,
        invoices: Sequence[Invoice],
        products: Sequence[Product],
        ledger: Sequence[LedgerEntry],
    ) -> None: ...


@dataclass(frozen=True)
class StoreState:
    """A consistent full-state image as handed to ``save_all``."""

    invoices: tuple[Invoice, ...] = ()
    products: tuple[Product, ...] = ()
    ledger: tuple[LedgerEntry, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.invoices and not self.products and not self.ledger
