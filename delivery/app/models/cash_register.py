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
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from delivery.app.core.database import Base


class RegisterStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class MovementKind(str, enum.Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class CashRegisterDay(Base):
    """The cash drawer for one business date.

    One row per date: a closed day cannot be reopened. `closing_balance` is
    computed once at close time and never written again.
    """

    __tablename__ = "cash_register_days"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    business_date: Mapped[date] = mapped_column(Date, unique=True, nullable=False)
    status: Mapped[RegisterStatus] = mapped_column(
        Enum(RegisterStatus), nullable=False, default=RegisterStatus.OPEN
    )
    opening_balance: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=2), nullable=False, default=Decimal("0.00")
    )
    closing_balance: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=2), nullable=True
    )
    # Settlement totals pushed by the daily aggregator (last write wins).
    total_cash: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=2), nullable=False, default=Decimal("0.00")
    )
    total_pix: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=2), nullable=False, default=Decimal("0.00")
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    opened_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    movements: Mapped[list[CashMovement]] = relationship(
        back_populates="register",
        cascade="all, delete-orphan",
        order_by="CashMovement.created_at",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(
            "opening_balance >= 0", name="ck_register_opening_non_negative"
        ),
        Index("ix_register_days_status", "status"),
    )

    @property
    def deposits(self) -> list[CashMovement]:
        return [m for m in self.movements if m.kind == MovementKind.DEPOSIT]

    @property
    def withdrawals(self) -> list[CashMovement]:
        return [m for m in self.movements if m.kind == MovementKind.WITHDRAWAL]

    def total_deposits(self) -> Decimal:
        return sum((m.amount for m in self.deposits), Decimal("0.00"))

    def total_withdrawals(self) -> Decimal:
        return sum((m.amount for m in self.withdrawals), Decimal("0.00"))

    def running_balance(self) -> Decimal:
        """opening + cash + pix + deposits - withdrawals, as of now."""
        return (
            self.opening_balance
            + self.total_cash
            + self.total_pix
            + self.total_deposits()
            - self.total_withdrawals()
        )

    @property
    def current_balance(self) -> Decimal:
        """Frozen closing balance once closed, running balance while open."""
        if self.status == RegisterStatus.CLOSED and self.closing_balance is not None:
            return self.closing_balance
        return self.running_balance()


class CashMovement(Base):
    """A manual deposit into or withdrawal from the drawer."""

    __tablename__ = "cash_movements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    register_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("cash_register_days.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[MovementKind] = mapped_column(Enum(MovementKind), nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=2), nullable=False
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    register: Mapped[CashRegisterDay] = relationship(back_populates="movements")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_cash_movement_amount_positive"),
        Index("ix_cash_movements_register", "register_id"),
    )
