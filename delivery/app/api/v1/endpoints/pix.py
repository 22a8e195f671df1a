from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from delivery.app.api.deps import http_error
from delivery.app.core.config import settings
from delivery.app.core.database import get_db, money
from delivery.app.core.errors import LedgerError, ValidationError
from delivery.app.schemas.pix import PixPayloadOut
from delivery.app.services.orders import get_order
from delivery.app.services.pix import build_pix_payload

router = APIRouter()


@router.get("/orders/{order_id}", response_model=PixPayloadOut)
def order_pix_payload(
    order_id: UUID,
    amount: Decimal | None = Query(None, description="Defaults to the balance due"),
    db: Session = Depends(get_db),
) -> dict:
    try:
        order = get_order(db, order_id)
    except LedgerError as e:
        raise http_error(e)

    charge = money(order.balance_due if amount is None else amount)
    if charge <= 0:
        raise http_error(
            ValidationError("Nothing to charge: amount must be greater than zero")
        )
    payload = build_pix_payload(
        settings.PIX_KEY,
        settings.PIX_MERCHANT_NAME,
        settings.PIX_MERCHANT_CITY,
        charge,
    )
    return {"order_id": order_id, "amount": charge, "payload": payload}
