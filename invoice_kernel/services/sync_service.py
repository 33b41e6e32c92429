"""
SyncService -- best-effort push of finalized invoices to an external sheet.

Responsibility:
    Builds the external payload for a finalized invoice and delivers it
    on a background worker.  The outcome is reported back through a
    callback that the engine uses to set ``synchronization_status``.

Architecture position:
    Kernel > Services.  Side channel only: it is outside the consistency
    boundary of finalization.

Invariants enforced:
    - Dispatch never blocks the finalizing caller.
    - Client failures are converted to ``SyncStatus.FAILED``; they are
      never raised to the engine's callers.

Failure modes:
    - ``WebhookSyncClient`` raises SyncError on transport errors,
      timeouts and non-2xx responses.  ``SyncDispatcher`` catches it.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Protocol

import httpx

from invoice_kernel.domain.invoice import Invoice, SyncStatus
from invoice_kernel.exceptions import SyncError
from invoice_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.sync")

SyncCallback = Callable[[str, SyncStatus], None]


def build_sync_payload(invoice: Invoice) -> dict[str, Any]:
    """Row appended to the external sheet for one finalized invoice."""
    return {
        "invNo": invoice.id,
        "school": invoice.customer_name,
        "qty": invoice.total_quantity,
        "amount": str(invoice.total_amount),
        "royalty": str(invoice.royalty_fee),
        "netRevenue": str(invoice.net_revenue),
    }


class SyncClient(Protocol):
    def push(self, payload: dict[str, Any]) -> None:
        """Deliver one payload.  Raise SyncError on failure."""
        ...


class NullSyncClient:
    """Accepts every payload without contacting anything."""

    def push(self, payload: dict[str, Any]) -> None:
        logger.info("sync_skipped", extra={"inv_no": payload.get("invNo")})


class WebhookSyncClient:
    """POSTs payloads as JSON to a web-app endpoint."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ):
        self._url = url
        self._client = client or httpx.Client(timeout=timeout)
        self._owns_client = client is None

    def push(self, payload: dict[str, Any]) -> None:
        invoice_id = str(payload.get("invNo"))
        try:
            response = self._client.post(self._url, json=payload)
        except httpx.HTTPError as exc:
            raise SyncError(invoice_id, f"{type(exc).__name__}: {exc}") from exc
        if response.status_code // 100 != 2:
            raise SyncError(invoice_id, f"HTTP {response.status_code}")

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class SyncDispatcher:
    """
    Runs sync pushes on a small thread pool.

    ``wait()`` blocks until every job submitted so far has finished,
    including its callback.
    """

    def __init__(self, max_workers: int = 2):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="invoice-sync"
        )
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def submit(
        self,
        invoice_id: str,
        payload: dict[str, Any],
        client: SyncClient,
        on_done: SyncCallback,
    ) -> Future:
        future = self._executor.submit(self._run, invoice_id, payload, client, on_done)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._discard)
        return future

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def _run(
        self,
        invoice_id: str,
        payload: dict[str, Any],
        client: SyncClient,
        on_done: SyncCallback,
    ) -> SyncStatus:
        with LogContext.bind(invoice_id=invoice_id):
            try:
                client.push(payload)
            except SyncError:
                logger.warning("sync_failed", exc_info=True)
                status = SyncStatus.FAILED
            except Exception:
                logger.exception("sync_client_crashed")
                status = SyncStatus.FAILED
            else:
                logger.info("sync_succeeded")
                status = SyncStatus.SYNCED
            on_done(invoice_id, status)
        return status

    def wait(self, timeout: float | None = None) -> bool:
        """True if all outstanding jobs finished within ``timeout``."""
        with self._lock:
            pending = set(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_jobs: bool = True) -> None:
        self._executor.shutdown(wait=wait_for_jobs)
