"""
Tests for the read-only selectors: role work queues and the dashboard
summary.  Both consume engine snapshots and never mutate them.
"""

from datetime import datetime, timezone
from decimal import Decimal

from invoice_kernel.domain.invoice import ApprovalRole, InvoiceStatus
from invoice_kernel.selectors.dashboard import (
    DailyRevenue,
    daily_net_revenue,
    low_stock_products,
    summarize,
)
from invoice_kernel.selectors.queue import pending_for_role


def _finalize(engine, invoice_id: str):
    engine.approve(invoice_id, ApprovalRole.ACCOUNTS, "Alice Accountant")
    return engine.approve(invoice_id, ApprovalRole.STOCK, "Steve Stock")


class TestPendingForRole:
    def test_queues_follow_approvals(self, engine):
        fresh = engine.create_invoice("A School", [("P001", 1)])
        accounts_done = engine.create_invoice("B School", [("P001", 1)])
        stock_done = engine.create_invoice("C School", [("P001", 1)])
        finished = engine.create_invoice("D School", [("P001", 1)])
        dropped = engine.create_invoice("E School", [("P001", 1)])

        engine.approve(accounts_done.id, ApprovalRole.ACCOUNTS, "Alice Accountant")
        engine.approve(stock_done.id, ApprovalRole.STOCK, "Steve Stock")
        _finalize(engine, finished.id)
        engine.reject(dropped.id, ApprovalRole.STOCK, "Steve Stock")

        invoices = engine.list_invoices()
        accounts_queue = pending_for_role(invoices, ApprovalRole.ACCOUNTS)
        stock_queue = pending_for_role(invoices, ApprovalRole.STOCK)

        assert [i.id for i in accounts_queue] == [stock_done.id, fresh.id]
        assert [i.id for i in stock_queue] == [accounts_done.id, fresh.id]

    def test_empty_when_nothing_open(self, engine):
        invoice = engine.create_invoice("A School", [("P001", 1)])
        _finalize(engine, invoice.id)
        assert pending_for_role(engine.list_invoices(), ApprovalRole.ACCOUNTS) == ()
        assert pending_for_role(engine.list_invoices(), ApprovalRole.STOCK) == ()


class TestDashboard:
    def test_summary_from_committed_data(self, engine):
        done = engine.create_invoice("Lincoln High", [("P001", 100)])
        _finalize(engine, done.id)
        waiting = engine.create_invoice("Oak Ridge", [("P002", 2)])
        engine.approve(waiting.id, ApprovalRole.ACCOUNTS, "Alice Accountant")
        dropped = engine.create_invoice("Elm Street", [("P003", 1)])
        engine.reject(dropped.id, ApprovalRole.ACCOUNTS, "Alice Accountant")

        state = engine.snapshot()
        summary = summarize(state.products, state.invoices, state.ledger)

        assert summary.posted_revenue == Decimal("3825.00")
        assert summary.posted_royalty == Decimal("675.00")
        assert summary.pending_revenue == waiting.net_revenue == Decimal("204.00")
        assert summary.open_invoice_count == 1
        assert summary.product_count == 4
        assert [p.id for p in summary.low_stock] == ["P004"]
        assert summary.low_stock_count == 1
        assert summary.daily_revenue == (
            DailyRevenue(done.date, Decimal("3825.00")),
        )

    def test_low_stock_after_deduction(self, engine):
        invoice = engine.create_invoice("Lincoln High", [("P001", 400)])
        _finalize(engine, invoice.id)
        assert [p.id for p in low_stock_products(engine.list_products())] == ["P001", "P004"]

    def test_daily_revenue_grouped_and_sorted(self, engine, deterministic_clock):
        deterministic_clock.set_time(datetime(2024, 3, 16, 9, 0, tzinfo=timezone.utc))
        later = engine.create_invoice("B School", [("P001", 2)])
        deterministic_clock.set_time(datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc))
        earlier_a = engine.create_invoice("A School", [("P001", 1)])
        earlier_b = engine.create_invoice("C School", [("P001", 1)])
        for invoice in (later, earlier_a, earlier_b):
            _finalize(engine, invoice.id)

        series = daily_net_revenue(engine.list_invoices())
        assert [d.date.day for d in series] == [15, 16]
        assert series[0].net_revenue == Decimal("76.50")
        assert series[1].net_revenue == Decimal("76.50")

    def test_empty_state(self):
        summary = summarize((), (), ())
        assert summary.posted_revenue == Decimal("0")
        assert summary.low_stock == ()
        assert summary.daily_revenue == ()
        assert summary.open_invoice_count == 0

    def test_open_invoices_excludes_terminal(self, engine):
        invoice = engine.create_invoice("A School", [("P001", 1)])
        engine.reject(invoice.id, ApprovalRole.STOCK, "Steve Stock")
        summary = summarize(engine.list_products(), engine.list_invoices(), engine.list_ledger())
        assert summary.open_invoice_count == 0
        assert engine.get_invoice(invoice.id).status is InvoiceStatus.REJECTED
