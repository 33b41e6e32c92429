"""
Ledger -- append-only sequence of accounting entries.

Invariants enforced:
    - Entries are never mutated or removed.
    - Entry ids are unique; appending a duplicate id is an error.
"""

from __future__ import annotations

from typing import Iterable

from invoice_kernel.domain.ledger import LedgerEntry


class Ledger:
    def __init__(self, entries: Iterable[LedgerEntry] = ()):
        self._entries: list[LedgerEntry] = []
        self._ids: set[str] = set()
        self.append(*entries)

    def append(self, *entries: LedgerEntry) -> None:
        """Add entries at the end, in the order given."""
        batch_ids = [entry.id for entry in entries]
        duplicates = [i for i in batch_ids if i in self._ids]
        if duplicates or len(set(batch_ids)) != len(batch_ids):
            raise ValueError(f"Duplicate ledger entry ids: {duplicates or batch_ids}")
        self._entries.extend(entries)
        self._ids.update(batch_ids)

    def all(self) -> tuple[LedgerEntry, ...]:
        return tuple(self._entries)

    def has_entries_for(self, invoice_id: str) -> bool:
        return any(entry.invoice_id == invoice_id for entry in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    # Transaction support

    def snapshot(self) -> int:
        return len(self._entries)

    def restore(self, length: int) -> None:
        removed = self._entries[length:]
        del self._entries[length:]
        self._ids.difference_update(entry.id for entry in removed)
