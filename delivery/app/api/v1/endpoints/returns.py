from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from delivery.app.api.deps import get_operator, http_error
from delivery.app.core.database import get_db
from delivery.app.core.errors import LedgerError
from delivery.app.models.returns import OrderReturn, ReturnStatus
from delivery.app.schemas.returns import ReturnCreate, ReturnOut, ReturnStatusUpdate
from delivery.app.services import returns as return_service

router = APIRouter()


@router.get("/", response_model=list[ReturnOut])
def list_returns(
    status_filter: ReturnStatus | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
) -> list[OrderReturn]:
    return return_service.list_returns(db, status_filter)


@router.post(
    "/orders/{order_id}", response_model=ReturnOut, status_code=status.HTTP_201_CREATED
)
def create_return(
    order_id: UUID,
    payload: ReturnCreate,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> OrderReturn:
    try:
        return return_service.process_return(
            db,
            order_id,
            payload.items,
            payload.reason,
            payload.refund_amount,
            notes=payload.notes,
            actor=operator,
        )
    except LedgerError as e:
        raise http_error(e)


@router.get("/orders/{order_id}", response_model=ReturnOut)
def get_return(order_id: UUID, db: Session = Depends(get_db)) -> OrderReturn:
    try:
        return return_service.get_return(db, order_id)
    except LedgerError as e:
        raise http_error(e)


@router.patch("/orders/{order_id}/status", response_model=ReturnOut)
def update_return_status(
    order_id: UUID,
    payload: ReturnStatusUpdate,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> OrderReturn:
    try:
        return return_service.update_return_status(
            db, order_id, payload.status, notes=payload.notes, actor=operator
        )
    except LedgerError as e:
        raise http_error(e)
