from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from product_api.core.db import Base


class ProductRecord(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price > 0", name="ck_products_price_positive"),
        Index("idx_products_name", "name"),
        Index("idx_products_created_at", "created_at"),
        # ids are never reused after a delete
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


SEED_PRODUCTS = (
    {"name": "Sample Product 1", "price": Decimal("10.99"), "description": "A sample product for testing."},
    {"name": "Sample Product 2", "price": Decimal("25.50"), "description": "Another sample product."},
    {"name": "Sample Product 3", "price": Decimal("5.00"), "description": "Third sample product."},
)
