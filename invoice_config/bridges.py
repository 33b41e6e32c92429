"""
Config -> Kernel bridges.

Functions that convert ``KernelSettings`` into kernel objects.  They live
in invoice_config (the producer) because the kernel must NEVER import
invoice_config.

Usage:
    from invoice_config import get_active_settings
    from invoice_config.bridges import build_engine

    engine = build_engine(get_active_settings())
"""

from __future__ import annotations

from invoice_config.loader import load_seed
from invoice_config.schema import KernelSettings
from invoice_kernel.domain.clock import Clock
from invoice_kernel.logging_config import configure_logging
from invoice_kernel.persistence import InMemoryPersistenceAdapter, PersistenceAdapter
from invoice_kernel.persistence.sql import SqlAlchemyPersistenceAdapter
from invoice_kernel.services.sync_service import (
    NullSyncClient,
    SyncClient,
    SyncDispatcher,
    WebhookSyncClient,
)
from invoice_kernel.services.workflow_engine import WorkflowEngine


def build_persistence_adapter(settings: KernelSettings) -> PersistenceAdapter:
    if settings.uses_memory_store:
        return InMemoryPersistenceAdapter()
    return SqlAlchemyPersistenceAdapter.from_url(settings.database_url)


def build_sync_client(settings: KernelSettings) -> SyncClient:
    if not settings.sync.enabled:
        return NullSyncClient()
    return WebhookSyncClient(
        settings.sync.webhook_url,
        timeout=settings.sync.timeout_seconds,
    )


def build_engine(
    settings: KernelSettings,
    *,
    clock: Clock | None = None,
    adapter: PersistenceAdapter | None = None,
    sync_client: SyncClient | None = None,
) -> WorkflowEngine:
    """
    Wire a WorkflowEngine from settings.

    Explicit ``adapter`` / ``sync_client`` arguments override the ones
    the settings would build.
    """
    configure_logging(level=settings.log_level)
    seed = load_seed(settings.seed_path) if settings.seed_path is not None else None
    return WorkflowEngine(
        adapter or build_persistence_adapter(settings),
        clock=clock,
        sync_client=sync_client or build_sync_client(settings),
        dispatcher=SyncDispatcher(max_workers=settings.sync.max_workers),
        seed=seed,
    )
