from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from delivery.app.models.returns import ReturnStatus


class ReturnItemIn(BaseModel):
    product_id: UUID
    quantity: int


class ReturnCreate(BaseModel):
    items: list[ReturnItemIn]
    reason: str
    refund_amount: Decimal | None = None
    notes: str | None = None

    @field_validator("items")
    @classmethod
    def at_least_one_item(cls, v: list[ReturnItemIn]) -> list[ReturnItemIn]:
        if not v:
            raise ValueError("Return must contain at least one item")
        return v


class ReturnStatusUpdate(BaseModel):
    status: ReturnStatus
    notes: str | None = None


class ReturnItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: UUID
    product_name: str | None
    quantity: int
    unit_price: Decimal


class ReturnOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_id: UUID
    reason: str
    status: ReturnStatus
    refund_amount: Decimal
    notes: str | None
    created_at: datetime
    updated_at: datetime
    items: list[ReturnItemOut]
