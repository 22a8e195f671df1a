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
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from delivery.app.core.database import Base


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class PaymentType(str, enum.Enum):
    CASH = "cash"
    PIX = "pix"


# Each state has exactly one successor; COMPLETED is terminal.
NEXT_STATUS: dict[OrderStatus, OrderStatus] = {
    OrderStatus.PENDING: OrderStatus.ASSIGNED,
    OrderStatus.ASSIGNED: OrderStatus.IN_PROGRESS,
    OrderStatus.IN_PROGRESS: OrderStatus.COMPLETED,
}

# Trip costs are incurred during an active delivery only.
TRIP_COST_STATUSES = frozenset({OrderStatus.ASSIGNED, OrderStatus.IN_PROGRESS})


class Order(Base):
    """A delivery order.

    Customer name/address/phone are a snapshot taken at creation time and do
    not follow later edits to the customer record. ``total_amount`` is fixed
    at creation; ``net_amount`` is recomputed on every trip-cost mutation.
    """

    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # Soft reference: the customer may be deleted later, the snapshot stays.
    customer_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    customer_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    driver_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus), nullable=False, default=OrderStatus.PENDING
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=2), nullable=False
    )
    net_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=2), nullable=False
    )
    created_on: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    lines: Mapped[list[OrderLine]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.position",
    )
    trip_costs: Mapped[list[TripCost]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="TripCost.position",
        collection_class=ordering_list("position"),
    )
    payments: Mapped[list[OrderPayment]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderPayment.created_at",
    )
    order_return: Mapped[OrderReturn | None] = relationship(  # noqa: F821
        back_populates="order",
        cascade="all, delete-orphan",
        uselist=False,
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_order_total_non_negative"),
        Index("ix_orders_status", "status"),
        Index("ix_orders_driver", "driver_id"),
        Index("ix_orders_customer", "customer_id"),
        Index("ix_orders_created_on", "created_on"),
    )

    def trip_cost_total(self) -> Decimal:
        return sum((c.amount for c in self.trip_costs), Decimal("0.00"))

    def paid_by_type(self, payment_type: PaymentType) -> Decimal:
        return sum(
            (p.amount for p in self.payments if p.payment_type == payment_type),
            Decimal("0.00"),
        )

    @property
    def amount_paid(self) -> Decimal:
        return sum((p.amount for p in self.payments), Decimal("0.00"))

    @property
    def paid_cash(self) -> Decimal:
        return self.paid_by_type(PaymentType.CASH)

    @property
    def paid_pix(self) -> Decimal:
        return self.paid_by_type(PaymentType.PIX)

    @property
    def balance_due(self) -> Decimal:
        """Negative when the customer overpaid."""
        return self.total_amount - self.amount_paid


class OrderLine(Base):
    """Immutable line item; product name and price are snapshots."""

    __tablename__ = "order_lines"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    product_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=2), nullable=False
    )

    order: Mapped[Order] = relationship(back_populates="lines")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_line_qty_positive"),
        CheckConstraint("unit_price >= 0", name="ck_order_line_price_non_negative"),
        Index("ix_order_lines_order", "order_id"),
        Index("ix_order_lines_product", "product_id"),
    )

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class TripCost(Base):
    """Cost incurred during delivery (fuel, toll...). Owned by its order."""

    __tablename__ = "order_trip_costs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=2), nullable=False
    )
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    order: Mapped[Order] = relationship(back_populates="trip_costs")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_trip_cost_amount_positive"),
        Index("ix_trip_costs_order", "order_id"),
    )


class OrderPayment(Base):
    """Append-only; never edited or removed."""

    __tablename__ = "order_payments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    payment_type: Mapped[PaymentType] = mapped_column(Enum(PaymentType), nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=2), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    order: Mapped[Order] = relationship(back_populates="payments")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_order_payment_amount_positive"),
        Index("ix_order_payments_order", "order_id"),
        Index("ix_order_payments_type", "payment_type"),
    )
