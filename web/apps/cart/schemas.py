import uuid
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, StrictInt


class AddItemDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    # Out-of-range values are clamped by the service, not rejected.
    quantity: StrictInt = 1


class CartLineOut(BaseModel):
    product_id: uuid.UUID
    name: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal


class CartOut(BaseModel):
    customer_id: uuid.UUID
    lines: List[CartLineOut]
    item_count: int
    total: Decimal

    @classmethod
    def from_view(cls, view) -> "CartOut":
        return cls(
            customer_id=view.customer_id,
            lines=[
                CartLineOut(
                    product_id=line.product_id,
                    name=line.name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    subtotal=line.subtotal,
                )
                for line in view.lines
            ],
            item_count=view.item_count,
            total=view.total,
        )
