from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from delivery.app.api.deps import get_operator, http_error
from delivery.app.core.database import get_db
from delivery.app.core.errors import LedgerError
from delivery.app.models.customer import Customer, CustomerTransaction
from delivery.app.schemas.customer import (
    CustomerCreate,
    CustomerOut,
    CustomerUpdate,
    TransactionCreate,
    TransactionOut,
)
from delivery.app.services import customers as customer_service

router = APIRouter()


@router.get("/", response_model=list[CustomerOut])
def list_customers(
    q: str | None = Query(None, description="Search by name, email, or phone"),
    db: Session = Depends(get_db),
) -> list[Customer]:
    return customer_service.list_customers(db, q)


@router.post("/", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreate,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> Customer:
    try:
        return customer_service.create_customer(db, **payload.model_dump(), actor=operator)
    except LedgerError as e:
        raise http_error(e)


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: UUID, db: Session = Depends(get_db)) -> Customer:
    try:
        return customer_service.get_customer(db, customer_id)
    except LedgerError as e:
        raise http_error(e)


@router.patch("/{customer_id}", response_model=CustomerOut)
def update_customer(
    customer_id: UUID,
    payload: CustomerUpdate,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> Customer:
    try:
        return customer_service.update_customer(
            db, customer_id, payload.model_dump(exclude_unset=True), actor=operator
        )
    except LedgerError as e:
        raise http_error(e)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> None:
    try:
        customer_service.delete_customer(db, customer_id, actor=operator)
    except LedgerError as e:
        raise http_error(e)


# ─── Ledger ───────────────────────────────────────────────────────────────────


@router.get("/{customer_id}/transactions", response_model=list[TransactionOut])
def list_transactions(
    customer_id: UUID, db: Session = Depends(get_db)
) -> list[CustomerTransaction]:
    try:
        return customer_service.list_transactions(db, customer_id)
    except LedgerError as e:
        raise http_error(e)


@router.post(
    "/{customer_id}/transactions",
    response_model=TransactionOut,
    status_code=status.HTTP_201_CREATED,
)
def record_transaction(
    customer_id: UUID,
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> CustomerTransaction:
    try:
        return customer_service.record_transaction(
            db,
            customer_id,
            payload.transaction_type,
            payload.amount,
            payload.description,
            actor=operator,
        )
    except LedgerError as e:
        raise http_error(e)


@router.post("/{customer_id}/rebuild-balance", response_model=CustomerOut)
def rebuild_balance(
    customer_id: UUID,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> Customer:
    try:
        return customer_service.rebuild_balance(db, customer_id, actor=operator)
    except LedgerError as e:
        raise http_error(e)
