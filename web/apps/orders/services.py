"""Order queries and operator/customer driven status changes."""

import logging

from apps.common import errors
from apps.customers.resolver import CustomerIdentityResolver
from .domain import OPERATOR_TARGETS, OrderStatus
from .models import OrderModel
from .state_machine import OrderStateMachine

logger = logging.getLogger("orders")


def is_operator(actor) -> bool:
    return bool(getattr(actor, "is_staff", False))


class OrderService:
    def __init__(self, states: OrderStateMachine, resolver: CustomerIdentityResolver | None = None):
        self.states = states
        self.resolver = resolver or CustomerIdentityResolver()

    def _get(self, order_id) -> OrderModel:
        try:
            return OrderModel.objects.select_related("payment").prefetch_related("lines").get(pk=order_id)
        except OrderModel.DoesNotExist:
            raise errors.NotFound("order", order_id)

    def visible_to(self, actor):
        """Orders the actor may read: everything for operators, own orders otherwise."""
        qs = OrderModel.objects.select_related("payment").order_by("-created_at")
        if is_operator(actor):
            return qs
        customer = self.resolver.resolve(actor.pk)
        return qs.filter(customer=customer)

    def get_for(self, order_id, actor) -> OrderModel:
        order = self._get(order_id)
        if not is_operator(actor) and order.customer_id != self.resolver.resolve(actor.pk).id:
            raise errors.OwnershipViolation("Order does not belong to this customer")
        return order

    def cancel(self, order_id, customer_id, actor) -> OrderModel:
        """Cancel an order on behalf of ``customer_id``.

        Operators may cancel any order; a customer only their own, and only
        while it is NEW or PROCESSING (the state machine enforces the latter).

        Raises:
            errors.NotFound: Unknown order.
            errors.OwnershipViolation: ``customer_id`` does not own the order,
                or the actor is neither that customer nor an operator.
            errors.InvalidTransition: The order is PAID or beyond.
        """
        order = self._get(order_id)
        if order.customer_id != customer_id:
            raise errors.OwnershipViolation("Order does not belong to this customer")
        if not is_operator(actor) and self.resolver.resolve(actor.pk).id != customer_id:
            raise errors.OwnershipViolation("Only the owner or an operator may cancel this order")

        updated = self.states.transition(order, OrderStatus.CANCELED)
        logger.info("order canceled", extra={"order_id": str(order.id), "by_operator": is_operator(actor)})
        return self._get(updated.pk)

    def advance(self, order_id, to_status, actor) -> OrderModel:
        """Operator-only fulfillment update to SHIPPED or DELIVERED."""
        if not is_operator(actor):
            raise errors.OwnershipViolation("Only operators may change fulfillment status")
        try:
            target = OrderStatus(to_status)
        except ValueError:
            raise errors.ValidationError(f"Unknown status: {to_status}")
        if target not in OPERATOR_TARGETS:
            raise errors.ValidationError("Status can only be advanced to SHIPPED or DELIVERED")
        order = self._get(order_id)
        self.states.transition(order, target)
        return self._get(order.pk)
