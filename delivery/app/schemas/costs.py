from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from delivery.app.models.cost import CostCategory


class CostCreate(BaseModel):
    cost_date: date | None = None
    description: str
    amount: Decimal
    category: CostCategory
    notes: str | None = None

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Amount must be greater than 0")
        return v


class CostOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    cost_date: date
    description: str
    amount: Decimal
    category: CostCategory
    notes: str | None
    created_at: datetime
