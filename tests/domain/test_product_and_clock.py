"""Tests for Product snapshots and the injectable clocks."""

from dataclasses import FrozenInstanceError
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from invoice_kernel.domain.catalog import Product
from invoice_kernel.domain.clock import DeterministicClock, SystemClock


class TestProduct:
    def test_with_stock_returns_new_snapshot(self):
        original = Product("P001", "Textbook", Decimal("45.00"), 500, 100)
        updated = original.with_stock(400)
        assert original.stock == 500
        assert updated.stock == 400
        assert updated.price == original.price

    def test_frozen(self):
        product = Product("P001", "Textbook", Decimal("45.00"), 500)
        with pytest.raises(FrozenInstanceError):
            product.stock = 1

    @pytest.mark.parametrize(
        "stock, reorder_level, expected",
        [(15, 25, True), (25, 25, True), (26, 25, False), (0, 0, True)],
    )
    def test_low_stock_threshold(self, stock, reorder_level, expected):
        product = Product("P004", "Tablet", Decimal("350.00"), stock, reorder_level)
        assert product.is_low_stock is expected

    def test_negative_stock_rejected(self):
        with pytest.raises(ValueError):
            Product("P001", "Textbook", Decimal("45.00"), -1)

    def test_negative_price_rejected(self):
        with pytest.raises(ValueError):
            Product("P001", "Textbook", Decimal("-1.00"), 1)

    def test_float_price_rejected(self):
        with pytest.raises(TypeError):
            Product("P001", "Textbook", 45.0, 1)


class TestClocks:
    def test_deterministic_clock_is_stable(self):
        clock = DeterministicClock(datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc))
        assert clock.now() == clock.now()
        assert clock.today() == date(2024, 3, 15)

    def test_advance_and_tick(self):
        clock = DeterministicClock(datetime(2024, 3, 15, 23, 59, 59, tzinfo=timezone.utc))
        assert clock.tick() == datetime(2024, 3, 16, 0, 0, 0, tzinfo=timezone.utc)
        assert clock.today() == date(2024, 3, 16)

    def test_set_time_resets_advance(self):
        clock = DeterministicClock()
        clock.advance(30)
        clock.set_time(datetime(2025, 1, 1, tzinfo=timezone.utc))
        assert clock.now() == datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_system_clock_is_utc(self):
        assert SystemClock().now().tzinfo is timezone.utc
