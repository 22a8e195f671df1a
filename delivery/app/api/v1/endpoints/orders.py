from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from delivery.app.api.deps import get_operator, http_error
from delivery.app.core.database import get_db
from delivery.app.core.errors import LedgerError
from delivery.app.models.order import Order, OrderStatus
from delivery.app.schemas.orders import (
    AssignRequest,
    OrderCreate,
    OrderOut,
    OrderStatusUpdate,
    PaymentCreate,
    TripCostCreate,
)
from delivery.app.services import orders as order_service

router = APIRouter()


@router.get("/", response_model=list[OrderOut])
def list_orders(
    status_filter: OrderStatus | None = Query(None, alias="status"),
    driver_id: str | None = Query(None),
    created_on: date | None = Query(None),
    db: Session = Depends(get_db),
) -> list[Order]:
    return order_service.list_orders(
        db, status=status_filter, driver_id=driver_id, created_on=created_on
    )


@router.post("/", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> Order:
    try:
        return order_service.create_order(
            db,
            payload.lines,
            customer_id=payload.customer_id,
            customer_name=payload.customer_name,
            customer_address=payload.customer_address,
            customer_phone=payload.customer_phone,
            notes=payload.notes,
            actor=operator,
        )
    except LedgerError as e:
        raise http_error(e)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: UUID, db: Session = Depends(get_db)) -> Order:
    try:
        return order_service.get_order(db, order_id)
    except LedgerError as e:
        raise http_error(e)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> None:
    try:
        order_service.delete_order(db, order_id, actor=operator)
    except LedgerError as e:
        raise http_error(e)


# ─── Transitions ──────────────────────────────────────────────────────────────


@router.post("/{order_id}/assign", response_model=OrderOut)
def assign_order(
    order_id: UUID,
    payload: AssignRequest,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> Order:
    try:
        return order_service.assign_order(db, order_id, payload.driver_id, actor=operator)
    except LedgerError as e:
        raise http_error(e)


@router.post("/{order_id}/start", response_model=OrderOut)
def start_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> Order:
    try:
        return order_service.start_order(db, order_id, actor=operator)
    except LedgerError as e:
        raise http_error(e)


@router.post("/{order_id}/complete", response_model=OrderOut)
def complete_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> Order:
    try:
        return order_service.complete_order(db, order_id, actor=operator)
    except LedgerError as e:
        raise http_error(e)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: UUID,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> Order:
    try:
        return order_service.update_order_status(
            db, order_id, payload.status, driver_id=payload.driver_id, actor=operator
        )
    except LedgerError as e:
        raise http_error(e)


# ─── Trip Costs & Payments ────────────────────────────────────────────────────


@router.post("/{order_id}/trip-costs", response_model=OrderOut)
def add_trip_cost(
    order_id: UUID,
    payload: TripCostCreate,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> Order:
    try:
        return order_service.add_trip_cost(
            db, order_id, payload.amount, payload.description, actor=operator
        )
    except LedgerError as e:
        raise http_error(e)


@router.delete("/{order_id}/trip-costs/{index}", response_model=OrderOut)
def remove_trip_cost(
    order_id: UUID,
    index: int,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> Order:
    try:
        return order_service.remove_trip_cost(db, order_id, index, actor=operator)
    except LedgerError as e:
        raise http_error(e)


@router.post("/{order_id}/payments", response_model=OrderOut)
def add_payment(
    order_id: UUID,
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> Order:
    try:
        return order_service.add_payment(
            db, order_id, payload.payment_type, payload.amount, actor=operator
        )
    except LedgerError as e:
        raise http_error(e)
