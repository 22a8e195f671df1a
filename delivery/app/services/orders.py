"""Order engine: lifecycle, trip costs, net amount and payments.

    pending ──assign──▶ assigned ──start──▶ in_progress ──complete──▶ completed

Deletion replaces cancellation and is only legal while pending. Every
mutation bumps the order's version, so two operators acting on the same order
cannot silently overwrite each other.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from delivery.app.core.config import settings
from delivery.app.core.database import (
    ZERO,
    business_today,
    commit_or_conflict,
    money,
    utcnow,
)
from delivery.app.core.errors import (
    InvalidTransition,
    NotFound,
    OutOfRange,
    ValidationError,
)
from delivery.app.models.customer import Customer
from delivery.app.models.inventory import Product
from delivery.app.models.order import (
    NEXT_STATUS,
    TRIP_COST_STATUSES,
    Order,
    OrderLine,
    OrderPayment,
    OrderStatus,
    PaymentType,
    TripCost,
)
from delivery.app.schemas.orders import OrderLineIn
from delivery.app.services.audit import log_action

logger = logging.getLogger(__name__)


def _get_order(db: Session, order_id: UUID) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFound(f"Order {order_id} not found")
    return order


def _recompute_net(order: Order) -> None:
    order.net_amount = money(order.total_amount - order.trip_cost_total())


def _transition(
    db: Session,
    order: Order,
    target: OrderStatus,
    *,
    actor: str | None,
    changes: dict | None = None,
) -> Order:
    if NEXT_STATUS.get(order.status) != target:
        raise InvalidTransition(
            f"Cannot move order {order.id} from {order.status.value} to {target.value}"
        )
    previous = order.status
    order.status = target
    order.updated_at = utcnow()

    log_action(
        db,
        actor=actor,
        action=f"ORDER_{target.name}",
        resource_type="orders",
        resource_id=str(order.id),
        changes={"from": previous.value, "to": target.value, **(changes or {})},
    )
    commit_or_conflict(db, "Order")
    db.refresh(order)
    logger.info("Order %s: %s -> %s", order.id, previous.value, target.value)
    return order


# ─── Creation ─────────────────────────────────────────────────────────────────


def create_order(
    db: Session,
    lines: Sequence[OrderLineIn],
    *,
    customer_id: UUID | None = None,
    customer_name: str | None = None,
    customer_address: str | None = None,
    customer_phone: str | None = None,
    notes: str | None = None,
    created_on: date | None = None,
    actor: str | None = None,
) -> Order:
    """Create a pending order and fix its total.

    Customer fields not given explicitly are copied from the customer record
    when ``customer_id`` resolves; an unknown id is kept as a dangling
    reference. A line without a price takes the product's selling price.
    """
    if not lines:
        raise ValidationError("Order must contain at least one line")

    # ── Customer snapshot ────────────────────────────────────────────────
    if customer_id is not None:
        customer = db.query(Customer).filter(Customer.id == customer_id).first()
        if customer:
            customer_name = customer_name or customer.name
            customer_address = customer_address or customer.address
            customer_phone = customer_phone or customer.phone
    if not customer_name or not customer_name.strip():
        raise ValidationError("Customer name must not be empty")

    # ── Lines ────────────────────────────────────────────────────────────
    order_lines: list[OrderLine] = []
    total = ZERO
    for position, item in enumerate(lines):
        if item.quantity <= 0:
            raise ValidationError("Line quantity must be greater than zero")

        product = db.query(Product).filter(Product.id == item.product_id).first()
        unit_price = item.unit_price
        if unit_price is None:
            if product is None:
                raise ValidationError(
                    f"Line {position + 1}: unit price is required for unknown product"
                )
            unit_price = product.selling_price
        unit_price = money(unit_price)
        if unit_price < 0:
            raise ValidationError("Line unit price must be non-negative")

        product_name = item.product_name or (product.name if product else None)
        order_lines.append(
            OrderLine(
                position=position,
                product_id=item.product_id,
                product_name=product_name,
                quantity=item.quantity,
                unit_price=unit_price,
            )
        )
        total += unit_price * item.quantity

    total = money(total)
    now = utcnow()
    order = Order(
        customer_id=customer_id,
        customer_name=customer_name.strip(),
        customer_address=customer_address or "",
        customer_phone=customer_phone,
        status=OrderStatus.PENDING,
        notes=notes,
        total_amount=total,
        net_amount=total,
        created_on=created_on or business_today(),
        created_at=now,
        updated_at=now,
        lines=order_lines,
    )
    db.add(order)
    db.flush()

    log_action(
        db,
        actor=actor,
        action="ORDER_CREATED",
        resource_type="orders",
        resource_id=str(order.id),
        changes={
            "customer_name": order.customer_name,
            "total_amount": str(total),
            "lines": len(order_lines),
        },
    )

    commit_or_conflict(db, "Order")
    db.refresh(order)
    logger.info("Order %s created for %s, total %s", order.id, order.customer_name, total)
    return order


# ─── Transitions ──────────────────────────────────────────────────────────────


def assign_order(
    db: Session, order_id: UUID, driver_id: str, *, actor: str | None = None
) -> Order:
    if not driver_id or not driver_id.strip():
        raise ValidationError("Driver id must not be empty")
    order = _get_order(db, order_id)
    if order.status != OrderStatus.PENDING:
        raise InvalidTransition(
            f"Only pending orders can be assigned (order is {order.status.value})"
        )
    order.driver_id = driver_id.strip()
    return _transition(
        db, order, OrderStatus.ASSIGNED, actor=actor, changes={"driver_id": order.driver_id}
    )


def start_order(db: Session, order_id: UUID, *, actor: str | None = None) -> Order:
    order = _get_order(db, order_id)
    return _transition(db, order, OrderStatus.IN_PROGRESS, actor=actor)


def complete_order(db: Session, order_id: UUID, *, actor: str | None = None) -> Order:
    """Mark delivered. Payment totals are only checked in strict mode."""
    order = _get_order(db, order_id)
    if order.status != OrderStatus.IN_PROGRESS:
        raise InvalidTransition(
            f"Only in-progress orders can be completed (order is {order.status.value})"
        )

    paid = order.amount_paid
    if paid != order.total_amount:
        if settings.REQUIRE_FULL_PAYMENT_ON_COMPLETE:
            raise ValidationError(
                f"Payments ({paid}) must equal the order total ({order.total_amount})"
            )
        logger.warning(
            "Order %s completed with payments %s against total %s",
            order.id, paid, order.total_amount,
        )

    return _transition(
        db, order, OrderStatus.COMPLETED, actor=actor, changes={"amount_paid": str(paid)}
    )


def update_order_status(
    db: Session,
    order_id: UUID,
    status: OrderStatus | str,
    *,
    driver_id: str | None = None,
    actor: str | None = None,
) -> Order:
    """Move an order to ``status``, which must be its immediate successor."""
    try:
        target = OrderStatus(status)
    except ValueError:
        raise ValidationError(f"Unknown order status: {status!r}") from None

    if target == OrderStatus.ASSIGNED:
        if driver_id is None:
            raise ValidationError("driver_id is required to assign an order")
        return assign_order(db, order_id, driver_id, actor=actor)
    if target == OrderStatus.IN_PROGRESS:
        return start_order(db, order_id, actor=actor)
    if target == OrderStatus.COMPLETED:
        return complete_order(db, order_id, actor=actor)
    raise InvalidTransition("An order cannot be moved back to pending")


# ─── Trip Costs ───────────────────────────────────────────────────────────────


def add_trip_cost(
    db: Session,
    order_id: UUID,
    amount: Decimal,
    description: str = "",
    *,
    actor: str | None = None,
) -> Order:
    amt = money(amount)
    if amt <= ZERO:
        raise ValidationError("Trip cost amount must be greater than zero")
    order = _get_order(db, order_id)
    if order.status not in TRIP_COST_STATUSES:
        raise InvalidTransition(
            f"Trip costs can only be added during delivery (order is {order.status.value})"
        )

    order.trip_costs.append(TripCost(amount=amt, description=description or ""))
    _recompute_net(order)
    order.updated_at = utcnow()

    log_action(
        db,
        actor=actor,
        action="TRIP_COST_ADDED",
        resource_type="orders",
        resource_id=str(order.id),
        changes={
            "amount": str(amt),
            "description": description,
            "net_amount": str(order.net_amount),
        },
    )
    commit_or_conflict(db, "Order")
    db.refresh(order)
    return order


def remove_trip_cost(
    db: Session, order_id: UUID, index: int, *, actor: str | None = None
) -> Order:
    """Remove the trip cost at ``index`` (0-based, no negative indexing)."""
    order = _get_order(db, order_id)
    if index < 0 or index >= len(order.trip_costs):
        raise OutOfRange(
            f"Trip cost index {index} out of range (order has {len(order.trip_costs)})"
        )

    removed = order.trip_costs.pop(index)
    _recompute_net(order)
    order.updated_at = utcnow()

    log_action(
        db,
        actor=actor,
        action="TRIP_COST_REMOVED",
        resource_type="orders",
        resource_id=str(order.id),
        changes={
            "index": index,
            "amount": str(removed.amount),
            "net_amount": str(order.net_amount),
        },
    )
    commit_or_conflict(db, "Order")
    db.refresh(order)
    return order


# ─── Payments ─────────────────────────────────────────────────────────────────


def add_payment(
    db: Session,
    order_id: UUID,
    payment_type: PaymentType | str,
    amount: Decimal,
    *,
    actor: str | None = None,
) -> Order:
    """Append a cash or PIX payment. Partial and over-payments are allowed."""
    try:
        ptype = PaymentType(payment_type)
    except ValueError:
        raise ValidationError(f"Unknown payment type: {payment_type!r}") from None
    amt = money(amount)
    if amt <= ZERO:
        raise ValidationError("Payment amount must be greater than zero")

    order = _get_order(db, order_id)
    now = utcnow()
    order.payments.append(OrderPayment(payment_type=ptype, amount=amt, created_at=now))
    order.updated_at = now

    log_action(
        db,
        actor=actor,
        action="ORDER_PAYMENT_ADDED",
        resource_type="orders",
        resource_id=str(order.id),
        changes={"type": ptype.value, "amount": str(amt)},
    )
    commit_or_conflict(db, "Order")
    db.refresh(order)
    return order


# ─── Deletion ─────────────────────────────────────────────────────────────────


def delete_order(db: Session, order_id: UUID, *, actor: str | None = None) -> None:
    order = _get_order(db, order_id)
    if order.status != OrderStatus.PENDING:
        raise InvalidTransition(
            f"Only pending orders can be deleted (order is {order.status.value})"
        )
    log_action(
        db,
        actor=actor,
        action="ORDER_DELETED",
        resource_type="orders",
        resource_id=str(order.id),
        changes={
            "customer_name": order.customer_name,
            "total_amount": str(order.total_amount),
        },
    )
    db.delete(order)
    commit_or_conflict(db, "Order")
    logger.info("Order %s deleted", order_id)


# ─── Queries ──────────────────────────────────────────────────────────────────


def get_order(db: Session, order_id: UUID) -> Order:
    return _get_order(db, order_id)


def list_orders(
    db: Session,
    *,
    status: OrderStatus | None = None,
    driver_id: str | None = None,
    created_on: date | None = None,
) -> list[Order]:
    query = db.query(Order)
    if status is not None:
        query = query.filter(Order.status == status)
    if driver_id is not None:
        query = query.filter(Order.driver_id == driver_id)
    if created_on is not None:
        query = query.filter(Order.created_on == created_on)
    return query.order_by(Order.created_at.desc()).all()


def orders_by_driver(db: Session, driver_id: str) -> list[Order]:
    return list_orders(db, driver_id=driver_id)


def pending_orders(db: Session) -> list[Order]:
    return list_orders(db, status=OrderStatus.PENDING)
