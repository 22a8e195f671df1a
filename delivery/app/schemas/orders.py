from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from delivery.app.models.order import OrderStatus, PaymentType


# ─── Request ──────────────────────────────────────────────────────────────────


class OrderLineIn(BaseModel):
    product_id: UUID
    quantity: int
    # Defaults to the product's selling price when omitted
    unit_price: Decimal | None = None
    product_name: str | None = None


class OrderCreate(BaseModel):
    lines: list[OrderLineIn]
    customer_id: UUID | None = None
    customer_name: str | None = None
    customer_address: str | None = None
    customer_phone: str | None = None
    notes: str | None = None

    @field_validator("lines")
    @classmethod
    def at_least_one_line(cls, v: list[OrderLineIn]) -> list[OrderLineIn]:
        if not v:
            raise ValueError("Order must contain at least one line")
        return v


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    driver_id: str | None = None


class AssignRequest(BaseModel):
    driver_id: str


class TripCostCreate(BaseModel):
    amount: Decimal
    description: str = ""


class PaymentCreate(BaseModel):
    payment_type: PaymentType
    amount: Decimal

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Payment amount must be greater than zero")
        return v


# ─── Response ─────────────────────────────────────────────────────────────────


class OrderLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: UUID
    product_name: str | None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class TripCostOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    position: int
    amount: Decimal
    description: str


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment_type: PaymentType
    amount: Decimal
    created_at: datetime


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID | None
    customer_name: str
    customer_address: str
    customer_phone: str | None
    driver_id: str | None
    status: OrderStatus
    notes: str | None
    total_amount: Decimal
    net_amount: Decimal
    amount_paid: Decimal
    paid_cash: Decimal
    paid_pix: Decimal
    balance_due: Decimal
    created_on: date
    created_at: datetime
    updated_at: datetime
    version: int
    lines: list[OrderLineOut]
    trip_costs: list[TripCostOut]
    payments: list[PaymentOut]
