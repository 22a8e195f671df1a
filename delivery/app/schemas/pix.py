from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel


class PixPayloadOut(BaseModel):
    order_id: UUID
    amount: Decimal
    payload: str
