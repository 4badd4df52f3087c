import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class BoletoConfirmationOut(BaseModel):
    order_id: uuid.UUID
    order_number: str
    order_status: str
    payment_status: str
    amount: Decimal
    paid_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, p) -> "BoletoConfirmationOut":
        return cls(
            order_id=p.order_id,
            order_number=p.order.number,
            order_status=p.order.status,
            payment_status=p.status,
            amount=p.amount,
            paid_at=p.paid_at,
        )
