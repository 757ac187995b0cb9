"""
RR Nagar Backend — Product Models
===================================

What:  ORM models for the `products` table and the `product_suppliers`
       custody join table.
Who:   Used by ProductService for listing, creation and deletion, and by
       Alembic for schema management.

Ownership is expressed two ways:
    products.supplier_id       → the primary owner (null for templates)
    product_suppliers rows     → secondary custodians: suppliers that also
                                 carry a template-originated product
    Both are checked before a supplier may delete a product.

Deletion order:
    No foreign-key cascade is declared. Callers delete the product's
    product_suppliers rows first, then the product row.

Table invariants:
    is_template = true  → supplier_id IS NULL
    price >= 0
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.database import Base, utcnow
from marketplace.models.account import Supplier, TimestampMixin
from marketplace.models.category import Category

DEFAULT_UNIT = "piece"


class ProductSupplier(Base):
    """Custody row: `supplier_id` carries `product_id` without owning it."""

    __tablename__ = "product_suppliers"

    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id"), primary_key=True
    )
    supplier_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("suppliers.id"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return f"<ProductSupplier(product_id={self.product_id}, supplier_id={self.supplier_id})>"


class Product(TimestampMixin, Base):
    """
    A catalog entry, either a supplier's own listing or an admin template.

    Query Patterns:
        - Catalog listing: filters on title/variety/description, category,
          owner; ORDER BY created_at DESC
        - Template listing: WHERE is_template ORDER BY title
        - Single product: primary key lookup
    """

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # ── Descriptive fields (copied when a supplier clones a template) ─────
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    title_kannada: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description_kannada: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    variety: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    sub_variety: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    unit: Mapped[str] = mapped_column(
        String(32), nullable=False, default=DEFAULT_UNIT, server_default=text("'piece'")
    )
    image: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    category_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("categories.id"), nullable=True
    )

    # ── Commercial fields (never copied from a template) ──────────────────
    price: Mapped[float] = mapped_column(
        Numeric(10, 2, asdecimal=False), nullable=False, default=0
    )
    supplier_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("suppliers.id"), nullable=True
    )
    is_template: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    # ── Relationships ─────────────────────────────────────────────────────
    category: Mapped[Optional[Category]] = relationship(Category, lazy="raise")

    # Custodians through product_suppliers. viewonly: rows are managed through
    # ProductSupplier directly so the delete order stays explicit.
    suppliers: Mapped[List[Supplier]] = relationship(
        Supplier,
        secondary="product_suppliers",
        viewonly=True,
        order_by=Supplier.id,
        lazy="raise",
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        Index("idx_products_created_at", "created_at"),
        Index("idx_products_category_id", "category_id"),
        Index("idx_products_supplier_id", "supplier_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Product(id={self.id}, title='{self.title}', "
            f"supplier_id={self.supplier_id}, is_template={self.is_template})>"
        )
