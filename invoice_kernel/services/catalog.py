"""
Catalog -- owner of Product records.

Responsibility:
    Holds the current product snapshots in insertion order, answers
    availability questions, and applies stock deductions during
    finalization.

Architecture position:
    Kernel > Services.  Leaf component: depends only on domain types.

Invariants enforced:
    - Stock is never negative (Product rejects it on construction).
    - ``deduct`` does NOT re-validate sufficiency against business
      rules; it is only called by finalization after every item passed
      ``check_availability``.

Failure modes:
    - ProductNotFoundError on unknown product ids.
"""

from __future__ import annotations

from typing import Iterable

from invoice_kernel.domain.catalog import Product
from invoice_kernel.exceptions import ProductNotFoundError
from invoice_kernel.logging_config import get_logger

logger = get_logger("services.catalog")


class Catalog:
    """Product snapshots keyed by id, iterated in insertion order."""

    def __init__(self, products: Iterable[Product] = ()):
        self._products: dict[str, Product] = {}
        for product in products:
            if product.id in self._products:
                raise ValueError(f"Duplicate product id: {product.id}")
            self._products[product.id] = product

    def list_products(self) -> tuple[Product, ...]:
        return tuple(self._products.values())

    def get(self, product_id: str) -> Product:
        try:
            return self._products[product_id]
        except KeyError:
            raise ProductNotFoundError(product_id) from None

    def stock_of(self, product_id: str) -> int:
        """Current stock, or 0 for unknown products."""
        product = self._products.get(product_id)
        return product.stock if product is not None else 0

    def check_availability(self, product_id: str, quantity: int) -> bool:
        """True iff the product exists and ``stock >= quantity``."""
        product = self._products.get(product_id)
        return product is not None and product.stock >= quantity

    def deduct(self, product_id: str, quantity: int) -> Product:
        product = self.get(product_id)
        updated = product.with_stock(product.stock - quantity)
        self._products[product_id] = updated
        logger.debug(
            "stock_deducted",
            extra={
                "product_id": product_id,
                "quantity": quantity,
                "stock_before": product.stock,
                "stock_after": updated.stock,
            },
        )
        return updated

    # Transaction support

    def snapshot(self) -> dict[str, Product]:
        return dict(self._products)

    def restore(self, snapshot: dict[str, Product]) -> None:
        self._products = dict(snapshot)
