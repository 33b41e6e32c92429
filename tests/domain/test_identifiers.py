"""Tests for invoice id allocation and signature tokens."""

import re
import threading

import pytest

from invoice_kernel.domain.identifiers import (
    InvoiceIdSequence,
    parse_invoice_id,
    signature_token,
)


class TestParseInvoiceId:
    def test_well_formed(self):
        assert parse_invoice_id("INV-2023-0001") == (2023, 1)
        assert parse_invoice_id("INV-2024-12345") == (2024, 12345)

    @pytest.mark.parametrize("value", ["INV-23-0001", "inv-2023-0001", "2023-0001", "INV-2023-"])
    def test_malformed_is_none(self, value):
        assert parse_invoice_id(value) is None


class TestInvoiceIdSequence:
    def test_starts_at_one(self):
        seq = InvoiceIdSequence()
        assert seq.next_id(2024) == "INV-2024-0001"
        assert seq.next_id(2024) == "INV-2024-0002"

    def test_seeded_from_existing_ids(self):
        seq = InvoiceIdSequence(["INV-2024-0007", "INV-2024-0003", "legacy-42"])
        assert seq.next_id(2024) == "INV-2024-0008"

    def test_years_are_independent(self):
        seq = InvoiceIdSequence(["INV-2023-0001"])
        assert seq.next_id(2024) == "INV-2024-0001"
        assert seq.next_id(2023) == "INV-2023-0002"

    def test_observe_never_moves_backwards(self):
        seq = InvoiceIdSequence(["INV-2024-0009"])
        seq.observe(["INV-2024-0002"])
        assert seq.next_id(2024) == "INV-2024-0010"

    def test_concurrent_allocation_is_unique(self):
        seq = InvoiceIdSequence()
        results: list[str] = []
        lock = threading.Lock()
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            ids = [seq.next_id(2024) for _ in range(50)]
            with lock:
                results.extend(ids)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 400
        assert len(set(results)) == 400


class TestSignatureToken:
    def test_shape(self):
        token = signature_token("accounts")
        assert re.fullmatch(r"sig_accounts_[0-9a-f]{9}", token)

    def test_role_lowercased(self):
        assert signature_token("STOCK").startswith("sig_stock_")

    def test_tokens_differ(self):
        assert signature_token("stock") != signature_token("stock")
