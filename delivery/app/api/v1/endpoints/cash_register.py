from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from delivery.app.api.deps import get_operator, http_error
from delivery.app.core.database import business_today, get_db
from delivery.app.core.errors import LedgerError
from delivery.app.models.cash_register import CashRegisterDay
from delivery.app.schemas.cash_register import (
    CashMovementCreate,
    RegisterClose,
    RegisterOpen,
    RegisterOut,
    SettlementTotals,
)
from delivery.app.services import cash_register as register_service

router = APIRouter()


@router.get("/", response_model=list[RegisterOut])
def list_registers(
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    db: Session = Depends(get_db),
) -> list[CashRegisterDay]:
    return register_service.list_registers(db, date_from, date_to)


@router.get("/open", response_model=RegisterOut | None)
def get_open_register(db: Session = Depends(get_db)) -> CashRegisterDay | None:
    return register_service.get_open_register(db)


@router.post("/", response_model=RegisterOut, status_code=status.HTTP_201_CREATED)
def open_register(
    payload: RegisterOpen,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> CashRegisterDay:
    try:
        return register_service.open_register(
            db,
            payload.business_date or business_today(),
            payload.opening_balance,
            actor=operator,
        )
    except LedgerError as e:
        raise http_error(e)


@router.get("/{business_date}", response_model=RegisterOut)
def get_register(business_date: date, db: Session = Depends(get_db)) -> CashRegisterDay:
    try:
        return register_service.get_register(db, business_date)
    except LedgerError as e:
        raise http_error(e)


@router.post("/{business_date}/close", response_model=RegisterOut)
def close_register(
    business_date: date,
    payload: RegisterClose,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> CashRegisterDay:
    try:
        return register_service.close_register(
            db, business_date, payload.notes, actor=operator
        )
    except LedgerError as e:
        raise http_error(e)


@router.post("/{business_date}/deposits", response_model=RegisterOut)
def deposit(
    business_date: date,
    payload: CashMovementCreate,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> CashRegisterDay:
    try:
        return register_service.deposit(
            db, business_date, payload.amount, payload.reason, actor=operator
        )
    except LedgerError as e:
        raise http_error(e)


@router.post("/{business_date}/withdrawals", response_model=RegisterOut)
def withdraw(
    business_date: date,
    payload: CashMovementCreate,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> CashRegisterDay:
    try:
        return register_service.withdraw(
            db, business_date, payload.amount, payload.reason, actor=operator
        )
    except LedgerError as e:
        raise http_error(e)


@router.put("/{business_date}/settlement", response_model=RegisterOut)
def update_settlement(
    business_date: date,
    payload: SettlementTotals,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> CashRegisterDay:
    try:
        return register_service.update_settlement_totals(
            db, business_date, payload.total_cash, payload.total_pix, actor=operator
        )
    except LedgerError as e:
        raise http_error(e)


@router.post("/{business_date}/settlement/sync", response_model=RegisterOut)
def sync_settlement(
    business_date: date,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> CashRegisterDay:
    try:
        return register_service.sync_settlement_totals(db, business_date, actor=operator)
    except LedgerError as e:
        raise http_error(e)
