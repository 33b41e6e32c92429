"""
Kernel settings schema.

``KernelSettings`` is the parsed, frozen form of a settings YAML file.
It carries no behaviour; ``invoice_config.bridges`` turns it into kernel
objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class SyncSettings:
    """External sheet synchronization.  No URL means sync is a no-op."""

    webhook_url: str | None = None
    timeout_seconds: float = 10.0
    max_workers: int = 2

    @property
    def enabled(self) -> bool:
        return self.webhook_url is not None


@dataclass(frozen=True)
class KernelSettings:
    database_url: str | None = "sqlite:///invoice_kernel.db"
    sync: SyncSettings = field(default_factory=SyncSettings)
    log_level: str = "INFO"
    seed_path: Path | None = None
    source_path: Path | None = None
    checksum: str | None = None

    @property
    def uses_memory_store(self) -> bool:
        return self.database_url is None or self.database_url == "memory"
