"""Order lifecycle: statuses, legal transitions and checkout results.

The transition table is the single source of truth for which status
changes are allowed; everything that moves an order goes through
``state_machine.OrderStateMachine``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet


class OrderStatus(str, Enum):
    NEW = "NEW"
    PROCESSING = "PROCESSING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELED = "CANCELED"


TRANSITIONS: dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.NEW: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.PAID, OrderStatus.CANCELED}),
    OrderStatus.PAID: frozenset({OrderStatus.SHIPPED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELED: frozenset(),
}

TERMINAL = frozenset(s for s, targets in TRANSITIONS.items() if not targets)

# Statuses only an operator may set by hand.
OPERATOR_TARGETS = frozenset({OrderStatus.SHIPPED, OrderStatus.DELIVERED})


def allowed_targets(status) -> FrozenSet[OrderStatus]:
    return TRANSITIONS[OrderStatus(status)]


def can_transition(from_status, to_status) -> bool:
    """Return True when ``from_status -> to_status`` is an edge of the table."""
    return OrderStatus(to_status) in allowed_targets(from_status)


@dataclass(frozen=True)
class CheckoutResult:
    """Order produced (or found) by a checkout call.

    Attributes:
        order: The persisted order, lines prefetched.
        replayed: True when the idempotency key matched an existing order
            and nothing was executed again.
    """

    order: object
    replayed: bool = False
