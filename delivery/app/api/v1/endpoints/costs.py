from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from delivery.app.api.deps import get_operator, http_error
from delivery.app.core.database import get_db
from delivery.app.core.errors import LedgerError
from delivery.app.models.cost import Cost
from delivery.app.schemas.costs import CostCreate, CostOut
from delivery.app.services import costs as cost_service

router = APIRouter()


@router.get("/", response_model=list[CostOut])
def list_costs(
    month: str | None = Query(None, description="YYYY-MM"),
    day: date | None = Query(None),
    db: Session = Depends(get_db),
) -> list[Cost]:
    try:
        return cost_service.list_costs(db, month=month, day=day)
    except LedgerError as e:
        raise http_error(e)


@router.post("/", response_model=CostOut, status_code=status.HTTP_201_CREATED)
def create_cost(
    payload: CostCreate,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> Cost:
    try:
        return cost_service.create_cost(db, **payload.model_dump(), actor=operator)
    except LedgerError as e:
        raise http_error(e)


@router.delete("/{cost_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_cost(
    cost_id: UUID,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> None:
    try:
        cost_service.delete_cost(db, cost_id, actor=operator)
    except LedgerError as e:
        raise http_error(e)
