"""
Module: invoice_kernel.models.product
Responsibility: ORM persistence for catalog products.

Invariants enforced:
    - Non-negative price, stock and reorder level (CHECK constraints).
    - ``position`` preserves catalog order across reloads.
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from invoice_kernel.db.base import Base, DecimalString


class ProductModel(Base):
    __tablename__ = "products"

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("reorder_level >= 0", name="ck_products_reorder_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    price: Mapped[Decimal] = mapped_column(DecimalString(), nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False)
    reorder_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<ProductModel {self.id} stock={self.stock}>"
