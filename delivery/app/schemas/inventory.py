from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from delivery.app.models.inventory import MovementType


# ─── Product ──────────────────────────────────────────────────────────────────


class ProductCreate(BaseModel):
    name: str
    description: str = ""
    cost_price: Decimal
    selling_price: Decimal
    stock: int = 0

    @field_validator("cost_price", "selling_price")
    @classmethod
    def price_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Prices must be non-negative")
        return v


class ProductUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    selling_price: Decimal | None = None


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str
    cost_price: Decimal
    selling_price: Decimal
    stock: int
    created_at: datetime
    updated_at: datetime
    version: int


# ─── Stock ────────────────────────────────────────────────────────────────────


class StockAdjust(BaseModel):
    """Signed quantity: positive is an entry, negative an exit."""

    quantity: int
    new_cost_price: Decimal | None = None
    reason: str | None = None


class MovementCreate(BaseModel):
    movement_type: MovementType
    quantity: int
    reason: str = ""


class StockMovementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID
    movement_type: MovementType
    quantity: int
    reason: str
    created_at: datetime
