"""
WorkflowEngine -- invoice state machine and transaction coordinator.

Responsibility:
    Owns the Catalog, InvoiceStore and Ledger and implements invoice
    creation, per-role approval, rejection and finalization as atomic
    operations.  Persists the full state after every successful
    mutation and hands finalized invoices to the sync side channel.

Architecture position:
    Kernel > Services -- imperative shell.  The only component that
    writes to the stores.  Presentation, reporting and insight layers
    read snapshots through ``list_*`` and never mutate.

Invariants enforced:
    - Dual approval: FINALIZED only once both ACCOUNTS and STOCK have
      signed; the second approval finalizes in the same transaction.
    - Atomic finalization: status, stock deduction, both ledger entries
      and the PENDING sync flag commit together or not at all.
    - Availability is checked on STOCK approval and re-checked at
      finalization, against the same locked catalog that is deducted.
    - Terminal invoices (FINALIZED, REJECTED) accept no further
      approvals or rejections.
    - Durability: a mutation is returned to the caller only after
      ``save_all`` succeeded; on failure the in-memory state is rolled
      back to the pre-call snapshot.
    - At most one sync push per invoice is outstanding at a time; a
      mutation that commits after ``close()`` leaves its sync PENDING.

Concurrency:
    One re-entrant lock serializes every mutation and every snapshot
    read, so at most one finalization is in flight and readers never see
    a half-applied transaction.  The sync callback runs on a worker
    thread and takes the same lock.

Failure modes:
    - InvoiceNotFoundError / ProductNotFoundError: unknown ids.
    - ValidationError: bad creation input or blank approver name.
    - InsufficientStockError: availability check failed; no state change.
    - InvalidTransitionError: action not allowed in current status.
    - PersistenceError: load or flush failed; mutation rolled back.

Usage:
    engine = WorkflowEngine(InMemoryPersistenceAdapter(StoreState(products=...)))
    invoice = engine.create_invoice("Lincoln High", [OrderLine("P001", 100)])
    engine.approve(invoice.id, ApprovalRole.ACCOUNTS, "Alice")
    engine.approve(invoice.id, ApprovalRole.STOCK, "Steve")   # finalizes
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator, Sequence

from invoice_kernel.domain.catalog import Product
from invoice_kernel.domain.clock import Clock, SystemClock
from invoice_kernel.domain.identifiers import InvoiceIdSequence, signature_token
from invoice_kernel.domain.invoice import (
    Approval,
    ApprovalRole,
    Invoice,
    InvoiceStatus,
    OrderLine,
    Rejection,
    SyncStatus,
    price_order,
)
from invoice_kernel.domain.ledger import LedgerEntry, build_posting_entries
from invoice_kernel.domain.workflow import WorkflowAction, can_apply, status_after_approval
from invoice_kernel.exceptions import (
    InsufficientStockError,
    InvalidTransitionError,
    InvoiceKernelError,
    PersistenceError,
    StockShortage,
    ValidationError,
)
from invoice_kernel.logging_config import LogContext, get_logger
from invoice_kernel.persistence.base import PersistenceAdapter, StoreState
from invoice_kernel.services.catalog import Catalog
from invoice_kernel.services.invoice_store import InvoiceStore
from invoice_kernel.services.ledger import Ledger
from invoice_kernel.services.sync_service import (
    NullSyncClient,
    SyncClient,
    SyncDispatcher,
    build_sync_payload,
)

logger = get_logger("services.workflow_engine")

OrderInput = OrderLine | tuple[str, int]


def _coerce_role(role: ApprovalRole | str) -> ApprovalRole:
    if isinstance(role, ApprovalRole):
        return role
    try:
        return ApprovalRole(str(role).lower())
    except ValueError:
        raise ValidationError("role", f"unknown approval role {role!r}") from None


def _coerce_line(line: OrderInput) -> OrderLine:
    if isinstance(line, OrderLine):
        return line
    try:
        product_id, quantity = line
    except (TypeError, ValueError):
        raise ValidationError("items", f"expected (product_id, quantity), got {line!r}") from None
    return OrderLine(product_id=product_id, quantity=quantity)


def _require_name(field: str, value: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "must be a non-empty string")
    return value.strip()


class WorkflowEngine:
    """
    Dual-approval invoice workflow over owned, lock-guarded state.

    Contract:
        Construction loads the adapter's state, seeds it when the store
        is empty and ``seed`` is given, and reconstructs ledger entries
        for FINALIZED invoices when the stored ledger is empty.

    Non-goals:
        - No authentication: approver names and signatures are opaque.
        - No direct finalize call: finalization only follows approval.
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        clock: Clock | None = None,
        sync_client: SyncClient | None = None,
        dispatcher: SyncDispatcher | None = None,
        seed: StoreState | None = None,
    ) -> None:
        self._adapter = adapter
        self._clock = clock or SystemClock()
        self._sync_client = sync_client or NullSyncClient()
        self._dispatcher = dispatcher or SyncDispatcher()
        self._lock = threading.RLock()
        self._sync_in_flight: set[str] = set()
        self._closed = False

        state = self._load()
        seeded = False
        if state.is_empty and seed is not None:
            state = seed
            seeded = True

        self._catalog = Catalog(state.products)
        self._invoices = InvoiceStore(state.invoices)
        self._ledger = Ledger(state.ledger)
        self._ids = InvoiceIdSequence(self._invoices.ids())

        with self._lock:
            with self._transaction("startup") as changes:
                rebuilt = self._reconcile_ledger()
                changes.append(seeded or rebuilt > 0)

        logger.info(
            "engine_started",
            extra={
                "invoice_count": len(state.invoices),
                "product_count": len(state.products),
                "ledger_count": len(self._ledger),
                "seeded": seeded,
            },
        )

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def _load(self) -> StoreState:
        try:
            return StoreState(
                invoices=tuple(self._adapter.load_invoices()),
                products=tuple(self._adapter.load_products()),
                ledger=tuple(self._adapter.load_ledger()),
            )
        except InvoiceKernelError:
            raise
        except Exception as exc:
            raise PersistenceError("load", f"{type(exc).__name__}: {exc}") from exc

    def _reconcile_ledger(self) -> int:
        """
        Replay ledger posting for FINALIZED invoices when the ledger is empty.

        Stock is NOT deducted again; stored stock already reflects the
        original finalization.  Returns the number of invoices replayed.
        """
        if len(self._ledger) or not self._invoices.ids():
            return 0
        replayed = 0
        for invoice in self._invoices.all():
            if invoice.status is not InvoiceStatus.FINALIZED:
                continue
            if self._ledger.has_entries_for(invoice.id):
                continue
            self._ledger.append(*build_posting_entries(invoice))
            replayed += 1
        if replayed:
            logger.info("ledger_reconstructed", extra={"invoice_count": replayed})
        return replayed

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[list[bool]]:
        """
        Snapshot, run, flush; restore the snapshot if anything fails.

        The body may append ``False`` to the yielded list to skip the
        flush when it made no change.  Caller must hold ``self._lock``.
        """
        snapshot = (
            self._catalog.snapshot(),
            self._invoices.snapshot(),
            self._ledger.snapshot(),
        )
        changes: list[bool] = []
        try:
            yield changes
            if all(changes):
                self._flush(operation)
        except BaseException:
            self._catalog.restore(snapshot[0])
            self._invoices.restore(snapshot[1])
            self._ledger.restore(snapshot[2])
            logger.warning("transaction_rolled_back", extra={"operation": operation})
            raise

    def _flush(self, operation: str) -> None:
        try:
            self._adapter.save_all(
                self._invoices.all(),
                self._catalog.list_products(),
                self._ledger.all(),
            )
        except Exception as exc:
            raise PersistenceError(
                f"save ({operation})", f"{type(exc).__name__}: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_invoice(
        self,
        customer_name: str,
        lines: Sequence[OrderInput],
    ) -> Invoice:
        """
        Price an order and store it as a PENDING_APPROVAL invoice.

        Stock availability is NOT checked here; that happens on STOCK
        approval.

        Raises:
            ValidationError: blank customer, empty order, bad quantity.
            ProductNotFoundError: an order line names an unknown product.
            PersistenceError: flush failed; nothing was stored.
        """
        order = [_coerce_line(line) for line in lines or ()]
        with self._lock:
            priced = [(self._catalog.get(line.product_id), line.quantity) for line in order]
            today = self._clock.today()
            invoice_id = self._ids.next_id(today.year)
            invoice = price_order(invoice_id, customer_name, today, priced)

            with LogContext.bind(invoice_id=invoice_id):
                with self._transaction("create_invoice"):
                    stored = self._invoices.create(invoice)
                logger.info(
                    "invoice_created",
                    extra={
                        "customer_name": stored.customer_name,
                        "line_count": len(stored.items),
                        "total_amount": stored.total_amount,
                        "royalty_fee": stored.royalty_fee,
                        "net_revenue": stored.net_revenue,
                    },
                )
        return stored

    def approve(
        self,
        invoice_id: str,
        role: ApprovalRole | str,
        approver_name: str,
    ) -> Invoice:
        """
        Record (or overwrite) ``role``'s approval and reconcile status.

        STOCK approval first verifies availability of every item.  When
        both roles have approved, finalization runs in the same
        transaction.

        Raises:
            InvoiceNotFoundError, InvalidTransitionError,
            InsufficientStockError, ValidationError, PersistenceError.
        """
        role = _coerce_role(role)
        approver = _require_name("approver_name", approver_name)

        with self._lock, LogContext.bind(invoice_id=invoice_id, actor=approver, role=role.value):
            current = self._invoices.find(invoice_id)
            if not can_apply(WorkflowAction.APPROVE, current.status):
                raise InvalidTransitionError(invoice_id, current.status.value, "approve")

            approvals = current.approvals.with_approval(
                role,
                Approval(
                    approved_by=approver,
                    approved_at=self._clock.now(),
                    signature=signature_token(role.value),
                ),
            )
            next_status = status_after_approval(approvals)
            finalizing = next_status is InvoiceStatus.FINALIZED

            if role is ApprovalRole.STOCK or finalizing:
                self._ensure_available(current)

            with self._transaction(f"approve_{role.value}"):
                updated = self._invoices.update(
                    invoice_id,
                    lambda inv: replace(
                        inv,
                        approvals=approvals,
                        status=inv.status if finalizing else next_status,
                    ),
                )
                if finalizing:
                    updated = self._finalize(updated)
            if finalizing:
                self._sync_in_flight.add(invoice_id)

            logger.info(
                "approval_recorded",
                extra={"status": updated.status, "signature": approvals.get(role).signature},
            )

        if finalizing:
            self._schedule_sync(updated)
        return updated

    def reject(
        self,
        invoice_id: str,
        role: ApprovalRole | str,
        approver_name: str,
        reason: str | None = None,
    ) -> Invoice:
        """
        Move a non-terminal invoice to REJECTED.  Irreversible.

        No Catalog or Ledger effects.
        """
        role = _coerce_role(role)
        approver = _require_name("approver_name", approver_name)

        with self._lock, LogContext.bind(invoice_id=invoice_id, actor=approver, role=role.value):
            current = self._invoices.find(invoice_id)
            if not can_apply(WorkflowAction.REJECT, current.status):
                raise InvalidTransitionError(invoice_id, current.status.value, "reject")

            rejection = Rejection(
                role=role,
                rejected_by=approver,
                rejected_at=self._clock.now(),
                reason=reason,
            )
            with self._transaction("reject"):
                updated = self._invoices.update(
                    invoice_id,
                    lambda inv: replace(inv, status=InvoiceStatus.REJECTED, rejection=rejection),
                )
            logger.info("invoice_rejected", extra={"reason": reason})
        return updated

    def retry_sync(self, invoice_id: str) -> Invoice:
        """
        Re-dispatch external sync for a FINALIZED, not yet SYNCED invoice.

        Refused while a push for the invoice is still outstanding.  A
        PENDING invoice left over from a previous process has
        no outstanding push and may be retried.
        """
        with self._lock, LogContext.bind(invoice_id=invoice_id):
            current = self._invoices.find(invoice_id)
            if (
                not can_apply(WorkflowAction.SYNC, current.status)
                or current.synchronization_status is SyncStatus.SYNCED
            ):
                raise InvalidTransitionError(invoice_id, current.status.value, "retry sync")
            if invoice_id in self._sync_in_flight:
                raise InvalidTransitionError(
                    invoice_id, current.status.value, "retry sync while a push is in flight"
                )
            with self._transaction("retry_sync"):
                updated = self._invoices.update(
                    invoice_id,
                    lambda inv: replace(inv, synchronization_status=SyncStatus.PENDING),
                )
            self._sync_in_flight.add(invoice_id)
            logger.info("sync_retry_requested")
        self._schedule_sync(updated)
        return updated

    # ------------------------------------------------------------------
    # Finalization internals
    # ------------------------------------------------------------------

    def _ensure_available(self, invoice: Invoice) -> None:
        shortages = tuple(
            StockShortage(
                product_id=product_id,
                requested=quantity,
                available=self._catalog.stock_of(product_id),
            )
            for product_id, quantity in invoice.required_quantities().items()
            if not self._catalog.check_availability(product_id, quantity)
        )
        if shortages:
            logger.warning(
                "stock_check_failed",
                extra={"shortages": shortages},
            )
            raise InsufficientStockError(invoice.id, shortages)

    def _finalize(self, invoice: Invoice) -> Invoice:
        """
        Deduct stock, post REVENUE then ROYALTY, mark FINALIZED.

        Runs inside the caller's transaction; availability was verified
        by the caller under the same lock.
        """
        for product_id, quantity in invoice.required_quantities().items():
            self._catalog.deduct(product_id, quantity)
        entries = build_posting_entries(invoice)
        self._ledger.append(*entries)
        finalized = self._invoices.update(
            invoice.id,
            lambda inv: replace(
                inv,
                status=InvoiceStatus.FINALIZED,
                synchronization_status=SyncStatus.PENDING,
            ),
        )
        logger.info(
            "invoice_finalized",
            extra={
                "total_amount": finalized.total_amount,
                "revenue_credit": entries[0].credit,
                "royalty_credit": entries[1].credit,
            },
        )
        return finalized

    # ------------------------------------------------------------------
    # Sync side channel
    # ------------------------------------------------------------------

    def _schedule_sync(self, invoice: Invoice) -> None:
        """
        Queue the push for ``invoice``.  After ``close()`` nothing is queued:
        the invoice stays PENDING and can be retried by the next engine.
        """
        with self._lock:
            if self._closed:
                self._sync_in_flight.discard(invoice.id)
                with LogContext.bind(invoice_id=invoice.id):
                    logger.warning("sync_not_dispatched")
                return
            self._dispatcher.submit(
                invoice.id,
                build_sync_payload(invoice),
                self._sync_client,
                self._on_sync_done,
            )

    def _on_sync_done(self, invoice_id: str, status: SyncStatus) -> None:
        """Record the sync outcome.  Failures here are logged, never raised."""
        with self._lock:
            self._sync_in_flight.discard(invoice_id)
            try:
                with self._transaction("sync_status"):
                    self._invoices.update(
                        invoice_id,
                        lambda inv: replace(inv, synchronization_status=status),
                    )
            except InvoiceKernelError:
                logger.error(
                    "sync_status_update_failed",
                    extra={"sync_status": status},
                    exc_info=True,
                )
                return
        logger.info("sync_status_updated", extra={"sync_status": status})

    def wait_for_sync(self, timeout: float | None = None) -> bool:
        """Block until queued sync jobs and their status updates finish."""
        return self._dispatcher.wait(timeout)

    def close(self) -> None:
        """Stop accepting sync jobs, drain the queued ones, release the client."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._dispatcher.wait()
        self._dispatcher.shutdown()
        closer = getattr(self._sync_client, "close", None)
        if callable(closer):
            closer()

    def __enter__(self) -> WorkflowEngine:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Read-only snapshots
    # ------------------------------------------------------------------

    def list_products(self) -> tuple[Product, ...]:
        with self._lock:
            return self._catalog.list_products()

    def list_invoices(self, newest_first: bool = False) -> tuple[Invoice, ...]:
        with self._lock:
            invoices = self._invoices.all()
        return tuple(reversed(invoices)) if newest_first else invoices

    def list_ledger(self) -> tuple[LedgerEntry, ...]:
        with self._lock:
            return self._ledger.all()

    def get_invoice(self, invoice_id: str) -> Invoice:
        with self._lock:
            return self._invoices.find(invoice_id)

    def snapshot(self) -> StoreState:
        """All three collections read under one lock acquisition."""
        with self._lock:
            return StoreState(
                invoices=self._invoices.all(),
                products=self._catalog.list_products(),
                ledger=self._ledger.all(),
            )

    def check_availability(self, product_id: str, quantity: int) -> bool:
        with self._lock:
            return self._catalog.check_availability(product_id, quantity)

