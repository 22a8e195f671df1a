from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from delivery.app.models.customer import TransactionType


# ─── Customer CRUD ────────────────────────────────────────────────────────────


class CustomerCreate(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None


class CustomerUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None


class CustomerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str | None
    phone: str | None
    address: str | None
    balance: Decimal
    created_at: datetime
    updated_at: datetime
    version: int


# ─── Ledger ───────────────────────────────────────────────────────────────────


class TransactionCreate(BaseModel):
    transaction_type: TransactionType
    amount: Decimal
    description: str

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Amount must be greater than zero")
        return v


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    transaction_type: TransactionType
    amount: Decimal
    description: str
    created_at: datetime
