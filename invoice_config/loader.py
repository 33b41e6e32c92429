"""
Settings and seed loader (``invoice_config.loader``).

Responsibility
--------------
Parses the settings YAML into ``KernelSettings`` and the seed YAML into
a kernel ``StoreState``.  Runtime callers go through
``invoice_config.get_active_settings()`` and
``invoice_config.bridges.build_engine()`` rather than calling this
module directly.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Bad values (float money, unknown status, bad dates)  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from invoice_config.schema import KernelSettings, SyncSettings
from invoice_kernel.domain.catalog import Product
from invoice_kernel.domain.invoice import (
    Approval,
    ApprovalRole,
    Invoice,
    InvoiceApprovals,
    InvoiceItem,
    InvoiceStatus,
    SyncStatus,
    invoice_totals,
)
from invoice_kernel.domain.values import to_money
from invoice_kernel.persistence.base import StoreState

_LOG_LEVELS = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file and return its contents as a dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(path: Path) -> str:
    """SHA-256 of the raw file bytes, for the config trace."""
    return hashlib.sha256(Path(path).read_bytes()).hexdigest()


def parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_datetime(value: Any) -> datetime:
    """Parse an ISO timestamp; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value)
    else:
        raise ValueError(f"Cannot parse datetime from {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_money(value: Any, where: str) -> Decimal:
    try:
        return to_money(value)
    except TypeError as exc:
        raise ValueError(f"{where}: quote monetary amounts as strings ({exc})") from exc


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def parse_settings(data: dict[str, Any], source_path: Path | None = None) -> KernelSettings:
    """
    Build ``KernelSettings`` from a parsed settings document.

    ``seed`` paths are resolved relative to the settings file.
    """
    sync_data = data.get("sync") or {}
    sync = SyncSettings(
        webhook_url=sync_data.get("webhook_url"),
        timeout_seconds=float(sync_data.get("timeout_seconds", 10.0)),
        max_workers=int(sync_data.get("max_workers", 2)),
    )
    if sync.timeout_seconds <= 0:
        raise ValueError(f"sync.timeout_seconds must be positive: {sync.timeout_seconds}")
    if sync.max_workers < 1:
        raise ValueError(f"sync.max_workers must be at least 1: {sync.max_workers}")

    log_level = str((data.get("logging") or {}).get("level", "INFO")).upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(f"logging.level is not a valid level: {log_level}")

    seed_path = None
    if data.get("seed"):
        seed_path = Path(data["seed"])
        if source_path is not None and not seed_path.is_absolute():
            seed_path = source_path.parent / seed_path

    return KernelSettings(
        database_url=data.get("database_url", "sqlite:///invoice_kernel.db"),
        sync=sync,
        log_level=log_level,
        seed_path=seed_path,
        source_path=source_path,
        checksum=compute_checksum(source_path) if source_path is not None else None,
    )


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------


def parse_product(data: dict[str, Any]) -> Product:
    return Product(
        id=data["id"],
        name=data["name"],
        price=parse_money(data["price"], f"product {data['id']} price"),
        stock=int(data["stock"]),
        reorder_level=int(data.get("reorder_level", 0)),
        category=data.get("category", ""),
    )


def parse_item(data: dict[str, Any], where: str) -> InvoiceItem:
    unit_price = parse_money(data["unit_price"], f"{where} unit_price")
    quantity = int(data["quantity"])
    return InvoiceItem(
        product_id=data["product_id"],
        product_name=data["product_name"],
        quantity=quantity,
        unit_price=unit_price,
        total=unit_price * quantity,
    )


def parse_approvals(data: dict[str, Any]) -> InvoiceApprovals:
    approvals = InvoiceApprovals()
    for role_name, record in (data or {}).items():
        approvals = approvals.with_approval(
            ApprovalRole(role_name),
            Approval(
                approved_by=record["by"],
                approved_at=parse_datetime(record["at"]),
                signature=record["signature"],
            ),
        )
    return approvals


def parse_invoice(data: dict[str, Any]) -> Invoice:
    """
    Parse a historical invoice.

    Totals are derived from the items with the same rules as creation,
    so seeded invoices satisfy the pricing invariants by construction.
    """
    invoice_id = data["id"]
    items = tuple(
        parse_item(item, f"invoice {invoice_id} item {n}")
        for n, item in enumerate(data["items"], start=1)
    )
    if not items:
        raise ValueError(f"invoice {invoice_id}: at least one item is required")
    total_amount, royalty_fee, net_revenue = invoice_totals(items)
    sync_status = data.get("synchronization_status")
    return Invoice(
        id=invoice_id,
        customer_name=data["customer_name"],
        date=parse_date(data["date"]),
        items=items,
        total_amount=total_amount,
        royalty_fee=royalty_fee,
        net_revenue=net_revenue,
        status=InvoiceStatus(data.get("status", InvoiceStatus.PENDING_APPROVAL.value)),
        approvals=parse_approvals(data.get("approvals") or {}),
        synchronization_status=SyncStatus(sync_status) if sync_status else None,
    )


def parse_seed(data: dict[str, Any]) -> StoreState:
    """Seed documents carry products and invoices; the ledger is always rebuilt."""
    return StoreState(
        invoices=tuple(parse_invoice(i) for i in data.get("invoices") or ()),
        products=tuple(parse_product(p) for p in data.get("products") or ()),
    )


def load_seed(path: Path) -> StoreState:
    return parse_seed(load_yaml_file(path))
