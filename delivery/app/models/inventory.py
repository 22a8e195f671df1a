from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from delivery.app.core.database import Base


class MovementType(str, enum.Enum):
    INCREASE = "increase"
    DECREASE = "decrease"


class Product(Base):
    """Sellable product.

    `stock` is a running total kept in step with `StockMovement` rows and may
    go negative unless ALLOW_NEGATIVE_STOCK is switched off. A purchase at a
    different cost price forks a new Product row (same name/description) so
    cost prices are never averaged across existing stock.
    """

    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    cost_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=2), nullable=False
    )
    selling_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=2), nullable=False
    )
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("cost_price >= 0", name="ck_product_cost_price_non_negative"),
        CheckConstraint(
            "selling_price >= 0", name="ck_product_selling_price_non_negative"
        ),
        Index("ix_products_name", "name"),
    )


class StockMovement(Base):
    """Append-only stock ledger row.

    `product_id` is not a foreign key: deleting a product leaves
    its history in place as orphaned references.
    """

    __tablename__ = "stock_movements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    movement_type: Mapped[MovementType] = mapped_column(
        Enum(MovementType), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_movement_qty_positive"),
        Index("ix_stock_movements_product", "product_id"),
        Index("ix_stock_movements_created_at", "created_at"),
    )

    @property
    def signed_quantity(self) -> int:
        if self.movement_type == MovementType.INCREASE:
            return self.quantity
        return -self.quantity
