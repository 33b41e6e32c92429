"""
Pytest fixtures for the invoice kernel test suite.

Provides:
- Structured-logging setup and a ``captured_logs`` helper
- A deterministic clock
- A small catalog and an in-memory persistence adapter
- Recording / failing sync clients and an engine wired to all of the above

Every engine fixture runs against process-local state; the SQL adapter
tests build their own ``sqlite://`` engines.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Any

import pytest

from invoice_kernel.domain.catalog import Product
from invoice_kernel.domain.clock import DeterministicClock
from invoice_kernel.exceptions import SyncError
from invoice_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from invoice_kernel.persistence import InMemoryPersistenceAdapter, StoreState
from invoice_kernel.services.sync_service import SyncDispatcher
from invoice_kernel.services.workflow_engine import WorkflowEngine

# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture invoice_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, engine):
            engine.create_invoice("Lincoln High", [("P001", 1)])
            logs = captured_logs()
            assert any(r["message"] == "invoice_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("invoice_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(datetime(2024, 3, 15, 9, 0, 0, tzinfo=timezone.utc))


# =============================================================================
# Catalog and persistence fixtures
# =============================================================================


def make_products() -> tuple[Product, ...]:
    return (
        Product("P001", "Mathematics Textbook Gr 10", Decimal("45.00"), 500, 100, "Books"),
        Product("P002", "Science Lab Kit", Decimal("120.00"), 50, 20, "Equipment"),
        Product("P003", "School Uniform Set", Decimal("85.00"), 200, 50, "Apparel"),
        Product("P004", "Luminate Tablet", Decimal("350.00"), 15, 25, "Electronics"),
    )


@pytest.fixture
def products() -> tuple[Product, ...]:
    return make_products()


@pytest.fixture
def memory_adapter(products) -> InMemoryPersistenceAdapter:
    return InMemoryPersistenceAdapter(StoreState(products=products))


class FlakyAdapter(InMemoryPersistenceAdapter):
    """In-memory adapter whose saves can be switched to fail."""

    def __init__(self, initial: StoreState | None = None):
        super().__init__(initial)
        self.fail_saves = False

    def save_all(self, invoices, products, ledger) -> None:
        if self.fail_saves:
            raise OSError("disk full")
        super().save_all(invoices, products, ledger)


@pytest.fixture
def flaky_adapter(products) -> FlakyAdapter:
    return FlakyAdapter(StoreState(products=products))


# =============================================================================
# Sync fixtures
# =============================================================================


class RecordingSyncClient:
    """Records every payload; raises SyncError while ``fail`` is set."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.payloads: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def push(self, payload: dict[str, Any]) -> None:
        with self._lock:
            self.payloads.append(payload)
        if self.fail:
            raise SyncError(str(payload.get("invNo")), "sheet unavailable")


@pytest.fixture
def sync_client() -> RecordingSyncClient:
    return RecordingSyncClient()


# =============================================================================
# Engine fixtures
# =============================================================================


@pytest.fixture
def make_engine(deterministic_clock, sync_client):
    """
    Factory for engines sharing the test clock and sync client.

    Every engine built here is closed at teardown.
    """
    built: list[WorkflowEngine] = []

    def _make(adapter, **kwargs) -> WorkflowEngine:
        kwargs.setdefault("clock", deterministic_clock)
        kwargs.setdefault("sync_client", sync_client)
        kwargs.setdefault("dispatcher", SyncDispatcher(max_workers=1))
        engine = WorkflowEngine(adapter, **kwargs)
        built.append(engine)
        return engine

    yield _make

    for engine in built:
        engine.close()


@pytest.fixture
def engine(make_engine, memory_adapter) -> WorkflowEngine:
    return make_engine(memory_adapter)
