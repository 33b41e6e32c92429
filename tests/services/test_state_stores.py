"""
Tests for the engine-owned stores: Catalog, InvoiceStore and Ledger.

Each store supports ``snapshot``/``restore`` so the engine can roll a
failed transaction back; those round trips are covered here alongside
the ordinary read and write paths.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from invoice_kernel.domain.catalog import Product
from invoice_kernel.domain.invoice import InvoiceStatus, price_order
from invoice_kernel.domain.ledger import build_posting_entries
from invoice_kernel.exceptions import InvoiceNotFoundError, ProductNotFoundError
from invoice_kernel.services.catalog import Catalog
from invoice_kernel.services.invoice_store import InvoiceStore
from invoice_kernel.services.ledger import Ledger

TEXTBOOK = Product("P001", "Mathematics Textbook Gr 10", Decimal("45.00"), 500, 100)
TABLET = Product("P004", "Luminate Tablet", Decimal("350.00"), 15, 25)


def _invoice(invoice_id: str, quantity: int = 1):
    return price_order(invoice_id, "Lincoln High", date(2024, 3, 15), [(TEXTBOOK, quantity)])


class TestCatalog:
    def test_listing_keeps_insertion_order(self):
        catalog = Catalog([TABLET, TEXTBOOK])
        assert [p.id for p in catalog.list_products()] == ["P004", "P001"]

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError):
            Catalog([TEXTBOOK, TEXTBOOK])

    def test_unknown_product(self):
        with pytest.raises(ProductNotFoundError):
            Catalog([TEXTBOOK]).get("P999")

    def test_check_availability(self):
        catalog = Catalog([TABLET])
        assert catalog.check_availability("P004", 15)
        assert not catalog.check_availability("P004", 16)
        assert not catalog.check_availability("P999", 0)

    def test_stock_of_unknown_is_zero(self):
        assert Catalog([TABLET]).stock_of("P999") == 0

    def test_deduct_replaces_snapshot(self):
        catalog = Catalog([TEXTBOOK])
        before = catalog.get("P001")
        after = catalog.deduct("P001", 100)
        assert after.stock == 400
        assert before.stock == 500
        assert catalog.get("P001") is after

    def test_deduct_below_zero_refused(self):
        catalog = Catalog([TABLET])
        with pytest.raises(ValueError):
            catalog.deduct("P004", 16)
        assert catalog.stock_of("P004") == 15

    def test_snapshot_restore(self):
        catalog = Catalog([TEXTBOOK])
        snap = catalog.snapshot()
        catalog.deduct("P001", 10)
        catalog.restore(snap)
        assert catalog.stock_of("P001") == 500


class TestInvoiceStore:
    def test_create_resets_workflow_fields(self):
        store = InvoiceStore()
        stored = store.create(replace(_invoice("INV-2024-0001"), status=InvoiceStatus.FINALIZED))
        assert stored.status is InvoiceStatus.PENDING_APPROVAL
        assert store.find("INV-2024-0001") == stored

    def test_duplicate_create_rejected(self):
        store = InvoiceStore()
        store.create(_invoice("INV-2024-0001"))
        with pytest.raises(ValueError):
            store.create(_invoice("INV-2024-0001"))

    def test_find_unknown(self):
        with pytest.raises(InvoiceNotFoundError) as exc_info:
            InvoiceStore().find("INV-2024-0042")
        assert exc_info.value.invoice_id == "INV-2024-0042"

    def test_update_applies_mutator(self):
        store = InvoiceStore([_invoice("INV-2024-0001")])
        updated = store.update(
            "INV-2024-0001", lambda inv: replace(inv, status=InvoiceStatus.APPROVED_STOCK)
        )
        assert updated.status is InvoiceStatus.APPROVED_STOCK
        assert store.find("INV-2024-0001").status is InvoiceStatus.APPROVED_STOCK

    def test_update_cannot_change_id(self):
        store = InvoiceStore([_invoice("INV-2024-0001")])
        with pytest.raises(ValueError):
            store.update("INV-2024-0001", lambda inv: replace(inv, id="INV-2024-0002"))

    def test_snapshot_restore_drops_new_invoices(self):
        store = InvoiceStore([_invoice("INV-2024-0001")])
        snap = store.snapshot()
        store.create(_invoice("INV-2024-0002"))
        store.update("INV-2024-0001", lambda inv: replace(inv, status=InvoiceStatus.REJECTED))
        store.restore(snap)
        assert store.ids() == ("INV-2024-0001",)
        assert store.find("INV-2024-0001").status is InvoiceStatus.PENDING_APPROVAL


class TestLedgerStore:
    def test_append_preserves_order(self):
        ledger = Ledger()
        ledger.append(*build_posting_entries(_invoice("INV-2024-0001")))
        ledger.append(*build_posting_entries(_invoice("INV-2024-0002")))
        assert [e.id for e in ledger.all()] == [
            "LED-INV-2024-0001-1",
            "LED-INV-2024-0001-2",
            "LED-INV-2024-0002-1",
            "LED-INV-2024-0002-2",
        ]

    def test_duplicate_entry_rejected(self):
        entries = build_posting_entries(_invoice("INV-2024-0001"))
        ledger = Ledger(entries)
        with pytest.raises(ValueError):
            ledger.append(entries[0])
        assert len(ledger) == 2

    def test_has_entries_for(self):
        ledger = Ledger(build_posting_entries(_invoice("INV-2024-0001")))
        assert ledger.has_entries_for("INV-2024-0001")
        assert not ledger.has_entries_for("INV-2024-0002")

    def test_snapshot_restore_truncates(self):
        ledger = Ledger(build_posting_entries(_invoice("INV-2024-0001")))
        snap = ledger.snapshot()
        ledger.append(*build_posting_entries(_invoice("INV-2024-0002")))
        ledger.restore(snap)
        assert len(ledger) == 2
        # restored ids may be appended again
        ledger.append(*build_posting_entries(_invoice("INV-2024-0002")))
        assert len(ledger) == 4
