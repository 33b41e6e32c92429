"""
InMemoryPersistenceAdapter -- process-local store.

Domain objects are immutable, so holding the tuples passed to
``save_all`` is enough to give every load an isolated snapshot.
"""

from __future__ import annotations

import threading
from typing import Sequence

from invoice_kernel.domain.catalog import Product
from invoice_kernel.domain.invoice import Invoice
from invoice_kernel.domain.ledger import LedgerEntry
from invoice_kernel.persistence.base import StoreState


class InMemoryPersistenceAdapter:
    def __init__(self, initial: StoreState | None = None):
        self._state = initial or StoreState()
        self._lock = threading.Lock()
        self.save_count = 0

    @property
    def state(self) -> StoreState:
        with self._lock:
            return self._state

    def load_invoices(self) -> Sequence[Invoice]:
        return self.state.invoices

    def load_products(self) -> Sequence[Product]:
        return self.state.products

    def load_ledger(self) -> Sequence[LedgerEntry]:
        return self.state.ledger

    def save_all(
        self,
        invoices: Sequence[Invoice],
        products: Sequence[Product],
        ledger: Sequence[LedgerEntry],
    ) -> None:
        with self._lock:
            self._state = StoreState(tuple(invoices), tuple(products), tuple(ledger))
            self.save_count += 1
