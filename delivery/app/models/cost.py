from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    Index,
    Numeric,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from delivery.app.core.database import Base


class CostCategory(str, enum.Enum):
    DIESEL = "Diesel"
    ALIMENTACAO = "Alimentacao"
    CONTAS = "Contas"
    PNEU = "Pneu"
    OUTROS = "Outros"


class Cost(Base):
    """Operational expense of the business. Never netted against orders."""

    __tablename__ = "costs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    cost_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=2), nullable=False
    )
    category: Mapped[CostCategory] = mapped_column(Enum(CostCategory), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_cost_amount_positive"),
        Index("ix_costs_cost_date", "cost_date"),
        Index("ix_costs_category", "category"),
    )
