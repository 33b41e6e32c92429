"""ORM tables for the SQL persistence adapter."""

from invoice_kernel.models.invoice import (
    InvoiceApprovalModel,
    InvoiceItemModel,
    InvoiceModel,
)
from invoice_kernel.models.ledger import LedgerEntryModel
from invoice_kernel.models.product import ProductModel

__all__ = [
    "InvoiceApprovalModel",
    "InvoiceItemModel",
    "InvoiceModel",
    "LedgerEntryModel",
    "ProductModel",
]
