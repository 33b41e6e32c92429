"""
invoice_config -- single public entrypoint for kernel configuration.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_settings()``.  No kernel module reads configuration
    files or environment variables; the kernel MUST NEVER import from
    ``invoice_config``.  ``invoice_config.bridges`` turns settings into a
    ready ``WorkflowEngine``.

Audit relevance:
    Every successful ``get_active_settings()`` call emits an
    ``INVOICE_CONFIG_TRACE`` log entry with the settings path, checksum,
    database backend and whether external sync is enabled.
"""

from __future__ import annotations

import logging
from pathlib import Path

from invoice_config.loader import load_yaml_file, parse_settings
from invoice_config.schema import KernelSettings, SyncSettings

__all__ = ["get_active_settings", "KernelSettings", "SyncSettings"]

_logger = logging.getLogger("invoice_kernel.config")

_DEFAULT_SETTINGS_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_settings(path: Path | str | None = None) -> KernelSettings:
    """
    Load and validate the settings file.

    Args:
        path: Settings YAML.  Defaults to invoice_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the settings file (or its seed) is missing.
        ValueError: If a value fails validation.
    """
    settings_path = Path(path) if path is not None else _DEFAULT_SETTINGS_PATH
    settings = parse_settings(load_yaml_file(settings_path), source_path=settings_path)
    if settings.seed_path is not None and not settings.seed_path.exists():
        raise FileNotFoundError(f"Seed file not found: {settings.seed_path}")

    _logger.info(
        "INVOICE_CONFIG_TRACE",
        extra={
            "trace_type": "INVOICE_CONFIG_TRACE",
            "settings_path": str(settings_path),
            "checksum": settings.checksum,
            "database_backend": (
                "memory"
                if settings.uses_memory_store
                else settings.database_url.split(":", 1)[0]
            ),
            "sync_enabled": settings.sync.enabled,
            "seeded": settings.seed_path is not None,
        },
    )
    return settings
