from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from delivery.app.models.cash_register import MovementKind, RegisterStatus


# ─── Request ──────────────────────────────────────────────────────────────────


class RegisterOpen(BaseModel):
    business_date: date | None = None
    opening_balance: Decimal = Decimal("0.00")

    @field_validator("opening_balance")
    @classmethod
    def non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Opening balance must be non-negative")
        return v


class RegisterClose(BaseModel):
    notes: str | None = None


class CashMovementCreate(BaseModel):
    amount: Decimal
    reason: str

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Amount must be greater than zero")
        return v


class SettlementTotals(BaseModel):
    total_cash: Decimal
    total_pix: Decimal


# ─── Response ─────────────────────────────────────────────────────────────────


class CashMovementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    kind: MovementKind
    amount: Decimal
    reason: str
    created_at: datetime


class RegisterOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    business_date: date
    status: RegisterStatus
    opening_balance: Decimal
    closing_balance: Decimal | None
    total_cash: Decimal
    total_pix: Decimal
    notes: str | None
    opened_at: datetime
    closed_at: datetime | None
    version: int
    deposits: list[CashMovementOut]
    withdrawals: list[CashMovementOut]
    current_balance: Decimal
