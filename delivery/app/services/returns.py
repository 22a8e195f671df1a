"""Returns against completed orders.

A return has its own lifecycle: pending → approved | rejected, then
approved → completed. Only completion touches the other ledgers; it restocks
every returned item and credits the refund to the customer's account inside
the same transaction as the status change.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from delivery.app.core.database import ZERO, commit_or_conflict, money, utcnow
from delivery.app.core.errors import (
    Conflict,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from delivery.app.models.customer import Customer, TransactionType
from delivery.app.models.inventory import MovementType, Product
from delivery.app.models.order import Order, OrderStatus
from delivery.app.models.returns import (
    RETURN_TRANSITIONS,
    OrderReturn,
    ReturnItem,
    ReturnStatus,
)
from delivery.app.schemas.returns import ReturnItemIn
from delivery.app.services.audit import log_action
from delivery.app.services.customers import append_transaction
from delivery.app.services.inventory import append_movement

logger = logging.getLogger(__name__)


def restock_reason(order_id: UUID) -> str:
    return f"Devolução do pedido {order_id}"


def refund_description(order_id: UUID) -> str:
    return f"Reembolso da devolução do pedido {order_id}"


def _get_order(db: Session, order_id: UUID) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFound(f"Order {order_id} not found")
    return order


def get_return(db: Session, order_id: UUID) -> OrderReturn:
    ret = db.query(OrderReturn).filter(OrderReturn.order_id == order_id).first()
    if not ret:
        raise NotFound(f"No return registered for order {order_id}")
    return ret


def list_returns(db: Session, status: ReturnStatus | None = None) -> list[OrderReturn]:
    query = db.query(OrderReturn)
    if status is not None:
        query = query.filter(OrderReturn.status == status)
    return query.order_by(OrderReturn.created_at.desc()).all()


# ─── Process Return ───────────────────────────────────────────────────────────


def process_return(
    db: Session,
    order_id: UUID,
    items: Sequence[ReturnItemIn],
    reason: str,
    refund_amount: Decimal | None = None,
    *,
    notes: str | None = None,
    actor: str | None = None,
) -> OrderReturn:
    """Register a pending return for a completed order.

    Without an explicit ``refund_amount`` the refund is the returned
    quantities at the order's unit prices.
    """
    order = _get_order(db, order_id)
    if order.status != OrderStatus.COMPLETED:
        raise InvalidTransition(
            f"Only completed orders can be returned (order is {order.status.value})"
        )
    if order.order_return is not None:
        raise Conflict(f"Order {order_id} already has a return")
    if not reason or not reason.strip():
        raise ValidationError("Return reason must not be empty")
    if not items:
        raise ValidationError("Return must contain at least one item")

    # ── Validate against what was ordered ────────────────────────────────
    ordered: dict[UUID, int] = {}
    line_by_product = {}
    for line in order.lines:
        ordered[line.product_id] = ordered.get(line.product_id, 0) + line.quantity
        line_by_product.setdefault(line.product_id, line)

    requested: dict[UUID, int] = {}
    for item in items:
        if item.quantity <= 0:
            raise ValidationError("Returned quantity must be greater than zero")
        if item.product_id not in ordered:
            raise ValidationError(f"Product {item.product_id} is not on order {order_id}")
        requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

    for product_id, quantity in requested.items():
        if quantity > ordered[product_id]:
            raise ValidationError(
                f"Cannot return {quantity} of product {product_id}: "
                f"only {ordered[product_id]} ordered"
            )

    return_items = []
    computed_refund = ZERO
    for product_id, quantity in requested.items():
        line = line_by_product[product_id]
        return_items.append(
            ReturnItem(
                product_id=product_id,
                product_name=line.product_name,
                quantity=quantity,
                unit_price=line.unit_price,
            )
        )
        computed_refund += line.unit_price * quantity

    refund = money(computed_refund if refund_amount is None else refund_amount)
    if refund < ZERO:
        raise ValidationError("Refund amount must be non-negative")
    if refund > order.total_amount:
        raise ValidationError(
            f"Refund ({refund}) cannot exceed the order total ({order.total_amount})"
        )

    now = utcnow()
    ret = OrderReturn(
        order_id=order.id,
        reason=reason.strip(),
        status=ReturnStatus.PENDING,
        refund_amount=refund,
        notes=notes,
        created_at=now,
        updated_at=now,
        items=return_items,
    )
    db.add(ret)
    db.flush()

    log_action(
        db,
        actor=actor,
        action="RETURN_CREATED",
        resource_type="order_returns",
        resource_id=str(ret.id),
        changes={
            "order_id": str(order.id),
            "refund_amount": str(refund),
            "items": [
                {"product_id": str(i.product_id), "quantity": i.quantity}
                for i in return_items
            ],
        },
    )

    commit_or_conflict(db, "Return")
    db.refresh(ret)
    logger.info("Return %s registered for order %s, refund %s", ret.id, order.id, refund)
    return ret


# ─── Status Update ────────────────────────────────────────────────────────────


def _post_compensations(db: Session, order: Order, ret: OrderReturn) -> dict:
    """Stock increases and the customer refund. Does not commit."""
    restocked = []
    for item in ret.items:
        product = db.query(Product).filter(Product.id == item.product_id).first()
        if product is None:
            logger.warning(
                "Return %s: product %s no longer exists, %d units not restocked",
                ret.id, item.product_id, item.quantity,
            )
            continue
        append_movement(
            db, product, MovementType.INCREASE, item.quantity, restock_reason(order.id)
        )
        restocked.append({"product_id": str(product.id), "quantity": item.quantity})

    credited = None
    if order.customer_id is not None and ret.refund_amount > ZERO:
        customer = db.query(Customer).filter(Customer.id == order.customer_id).first()
        if customer is None:
            logger.warning(
                "Return %s: customer %s no longer exists, refund %s not credited",
                ret.id, order.customer_id, ret.refund_amount,
            )
        else:
            append_transaction(
                db,
                customer,
                TransactionType.CREDIT,
                ret.refund_amount,
                refund_description(order.id),
            )
            credited = str(customer.id)

    return {"restocked": restocked, "credited_customer": credited}


def update_return_status(
    db: Session,
    order_id: UUID,
    status: ReturnStatus | str,
    *,
    notes: str | None = None,
    actor: str | None = None,
) -> OrderReturn:
    try:
        target = ReturnStatus(status)
    except ValueError:
        raise ValidationError(f"Unknown return status: {status!r}") from None

    ret = get_return(db, order_id)
    if target not in RETURN_TRANSITIONS[ret.status]:
        raise InvalidTransition(
            f"Cannot move return from {ret.status.value} to {target.value}"
        )

    previous = ret.status
    changes: dict = {"from": previous.value, "to": target.value}
    if target == ReturnStatus.COMPLETED:
        changes.update(_post_compensations(db, ret.order, ret))

    ret.status = target
    if notes is not None:
        ret.notes = notes
    ret.updated_at = utcnow()

    log_action(
        db,
        actor=actor,
        action=f"RETURN_{target.name}",
        resource_type="order_returns",
        resource_id=str(ret.id),
        changes=changes,
    )

    commit_or_conflict(db, "Return")
    db.refresh(ret)
    logger.info("Return %s for order %s: %s -> %s", ret.id, order_id, previous.value, target.value)
    return ret
