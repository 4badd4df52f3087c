"""Order state machine.

Every status change of an order goes through ``OrderStateMachine.transition``:
it locks the order row, checks the edge against ``domain.TRANSITIONS``,
stamps ``paid_at``/``canceled_at`` the first time those states are entered
and tells the customer through the notification gateway.
"""

import logging

from django.db import transaction
from django.utils import timezone

from apps.common import errors
from apps.notifications.domain import NotificationGateway
from .domain import OrderStatus, can_transition
from .models import OrderModel

logger = logging.getLogger("orders")


class OrderStateMachine:
    def __init__(self, notifier: NotificationGateway):
        self.notifier = notifier

    def transition(self, order, to_status, **changes) -> OrderModel:
        """Move ``order`` to ``to_status``.

        Args:
            order: An ``OrderModel`` or its id.
            to_status: Target ``OrderStatus`` (or its value).
            **changes: Extra order fields saved in the same update, e.g.
                ``payment_status`` or ``decline_code``.

        Returns:
            OrderModel: The updated, freshly locked order.

        Raises:
            errors.NotFound: Unknown order id.
            errors.InvalidTransition: ``current -> to_status`` is not a legal edge.
        """
        to_status = OrderStatus(to_status)
        order_id = getattr(order, "pk", order)

        with transaction.atomic():
            try:
                locked = OrderModel.objects.select_for_update().get(pk=order_id)
            except OrderModel.DoesNotExist:
                raise errors.NotFound("order", order_id)

            current = OrderStatus(locked.status)
            if not can_transition(current, to_status):
                raise errors.InvalidTransition(current, to_status)

            now = timezone.now()
            locked.status = to_status.value
            fields = {"status", "updated_at"}
            if to_status is OrderStatus.PAID and locked.paid_at is None:
                locked.paid_at = now
                fields.add("paid_at")
            if to_status is OrderStatus.CANCELED and locked.canceled_at is None:
                locked.canceled_at = now
                fields.add("canceled_at")
            for name, value in changes.items():
                setattr(locked, name, value)
                fields.add(name)
            locked.save(update_fields=sorted(fields))

        logger.info(
            "order transitioned",
            extra={"order_id": str(locked.id), "from": current.value, "to": to_status.value},
        )
        self._notify(locked, to_status)
        return locked

    def _notify(self, order, status: OrderStatus):
        # Delivery is best effort; the transition is already committed.
        try:
            self.notifier.notify_status(order, status.value)
        except Exception:
            logger.exception("status notification failed", extra={"order_id": str(order.id)})
