"""
Catalog domain types (``invoice_kernel.domain.catalog``).

A ``Product`` is an immutable snapshot.  Stock changes produce a new
snapshot via ``with_stock``; the Catalog service swaps snapshots so that
readers never observe a half-applied deduction.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal


@dataclass(frozen=True)
class Product:
    """
    A sellable catalog item.

    Invariants:
        - ``price >= 0``
        - ``stock >= 0``
        - ``reorder_level >= 0``
    """

    id: str
    name: str
    price: Decimal
    stock: int
    reorder_level: int = 0
    category: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.price, Decimal):
            raise TypeError(f"Product {self.id} price must be Decimal, got {type(self.price).__name__}")
        if self.price < 0:
            raise ValueError(f"Product {self.id} price must be non-negative: {self.price}")
        if self.stock < 0:
            raise ValueError(f"Product {self.id} stock must be non-negative: {self.stock}")
        if self.reorder_level < 0:
            raise ValueError(f"Product {self.id} reorder level must be non-negative: {self.reorder_level}")

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.reorder_level

    def with_stock(self, stock: int) -> Product:
        return replace(self, stock=stock)
