"""
Identifier generation.

Invoice ids have the shape ``INV-<year>-<NNNN>``.  The numeric part is a
monotonic per-year sequence; the generator is seeded from ids already in
the store so restarts never reuse a number.

Signature tokens are opaque placeholders (``sig_<role>_<9 hex>``).  They
are NOT cryptographic and carry no authentication meaning.
"""

from __future__ import annotations

import re
import threading
from typing import Iterable
from uuid import uuid4

_INVOICE_ID_RE = re.compile(r"^INV-(\d{4})-(\d+)$")


def parse_invoice_id(invoice_id: str) -> tuple[int, int] | None:
    """Return (year, sequence) for well-formed ids, else None."""
    match = _INVOICE_ID_RE.match(invoice_id)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


class InvoiceIdSequence:
    """Thread-safe per-year monotonic invoice id allocator."""

    def __init__(self, existing_ids: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._last: dict[int, int] = {}
        self.observe(existing_ids)

    def observe(self, invoice_ids: Iterable[str]) -> None:
        """Advance the sequence past every well-formed id in ``invoice_ids``."""
        with self._lock:
            for invoice_id in invoice_ids:
                parsed = parse_invoice_id(invoice_id)
                if parsed is None:
                    continue
                year, seq = parsed
                if seq > self._last.get(year, 0):
                    self._last[year] = seq

    def next_id(self, year: int) -> str:
        with self._lock:
            seq = self._last.get(year, 0) + 1
            self._last[year] = seq
        return f"INV-{year}-{seq:04d}"


def signature_token(role: str) -> str:
    """Opaque, non-cryptographic approval token."""
    return f"sig_{role.lower()}_{uuid4().hex[:9]}"
