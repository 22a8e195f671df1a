from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from delivery.app.api.deps import get_operator, http_error
from delivery.app.core.database import get_db
from delivery.app.core.errors import LedgerError
from delivery.app.models.inventory import Product, StockMovement
from delivery.app.schemas.inventory import (
    MovementCreate,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    StockAdjust,
    StockMovementOut,
)
from delivery.app.services import inventory as stock_service

router = APIRouter()


# ─── Products ─────────────────────────────────────────────────────────────────


@router.get("/", response_model=list[ProductOut])
def list_products(db: Session = Depends(get_db)) -> list[Product]:
    return stock_service.list_products(db)


@router.post("/", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> Product:
    try:
        return stock_service.create_product(db, **payload.model_dump(), actor=operator)
    except LedgerError as e:
        raise http_error(e)


@router.get("/movements", response_model=list[StockMovementOut])
def list_all_movements(db: Session = Depends(get_db)) -> list[StockMovement]:
    return stock_service.list_movements(db)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: UUID, db: Session = Depends(get_db)) -> Product:
    try:
        return stock_service.get_product(db, product_id)
    except LedgerError as e:
        raise http_error(e)


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: UUID,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> Product:
    try:
        return stock_service.update_product(
            db, product_id, **payload.model_dump(exclude_unset=True), actor=operator
        )
    except LedgerError as e:
        raise http_error(e)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> None:
    try:
        stock_service.delete_product(db, product_id, actor=operator)
    except LedgerError as e:
        raise http_error(e)


# ─── Stock ────────────────────────────────────────────────────────────────────


@router.post("/{product_id}/stock", response_model=ProductOut)
def adjust_stock(
    product_id: UUID,
    payload: StockAdjust,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> Product:
    """Returns the product whose stock moved: a new variant on a cost change."""
    try:
        return stock_service.adjust_stock(
            db,
            product_id,
            payload.quantity,
            new_cost_price=payload.new_cost_price,
            reason=payload.reason,
            actor=operator,
        )
    except LedgerError as e:
        raise http_error(e)


@router.post(
    "/{product_id}/movements",
    response_model=StockMovementOut,
    status_code=status.HTTP_201_CREATED,
)
def record_movement(
    product_id: UUID,
    payload: MovementCreate,
    db: Session = Depends(get_db),
    operator: str | None = Depends(get_operator),
) -> StockMovement:
    try:
        return stock_service.record_movement(
            db,
            product_id,
            payload.movement_type,
            payload.quantity,
            payload.reason,
            actor=operator,
        )
    except LedgerError as e:
        raise http_error(e)


@router.get("/{product_id}/movements", response_model=list[StockMovementOut])
def list_movements(product_id: UUID, db: Session = Depends(get_db)) -> list[StockMovement]:
    return stock_service.list_movements(db, product_id)
