"""Read models for the shopping cart.

A cart is a live working set: every view prices its lines against the
current catalog, so nothing here is a ledger.
"""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from .models import MAX_LINE_QUANTITY

MIN_LINE_QUANTITY = 1


def clamp_quantity(quantity: int) -> int:
    """Clamp a requested quantity into ``[1, 999]``."""
    return max(MIN_LINE_QUANTITY, min(MAX_LINE_QUANTITY, quantity))


@dataclass(frozen=True)
class CartLineView:
    product_id: uuid.UUID
    name: str
    unit_price: Decimal
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class CartView:
    """Cart of one customer, valued at live catalog prices.

    Attributes:
        customer_id: Owner of the cart.
        lines: Lines in insertion order.
    """

    customer_id: uuid.UUID
    lines: List[CartLineView] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((line.subtotal for line in self.lines), Decimal("0.00"))

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def is_empty(self) -> bool:
        return not self.lines
