"""
SQLAlchemy 2.0 ORM Models — Price Drop Tracker
===============================================

  - product:        a tracked product page and its latest price
  - price_history:  append-only price snapshots per product
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class Product(Base):
    """
    A product page being tracked.

    Created on the first successful extraction; deleted only by the user.
    """
    __tablename__ = "product"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)  # uuid4
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    price_selector: Mapped[str | None] = mapped_column(String(1024), nullable=True)  # CSS or XPath hint
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    current_price: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    previous_price: Mapped[float | None] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), default="EUR")  # EUR, CZK
    last_checked: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    price_history: Mapped[list["PriceHistory"]] = relationship(
        "PriceHistory",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="PriceHistory.recorded_at",
    )


class PriceHistory(Base):
    """
    Price snapshot for a product, one per successful check.
    """
    __tablename__ = "price_history"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer(), "sqlite"), primary_key=True, autoincrement=True)
    product_id: Mapped[str] = mapped_column(
        ForeignKey("product.id", ondelete="CASCADE"), nullable=False, index=True
    )
    price: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="EUR")
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    product: Mapped["Product"] = relationship("Product", back_populates="price_history")
