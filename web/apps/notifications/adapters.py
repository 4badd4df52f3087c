import logging
from datetime import timedelta

from django.utils import timezone

from .domain import NotificationKind, confirmation_message, status_message
from .models import Notification

logger = logging.getLogger("notifications")


class DatabaseNotificationGateway:
    """Records notifications in the ``notifications`` table."""

    def notify_confirmation(self, order) -> None:
        n = Notification.objects.create(
            customer_id=order.customer_id,
            order=order,
            kind=NotificationKind.CONFIRMATION.value,
            message=confirmation_message(order.number, order.total),
        )
        logger.info("notification recorded", extra={"order_id": str(order.id), "kind": n.kind})

    def notify_status(self, order, status: str) -> None:
        status = getattr(status, "value", status)
        n = Notification.objects.create(
            customer_id=order.customer_id,
            order=order,
            kind=NotificationKind.STATUS.value,
            status=status,
            message=status_message(order.number, status),
        )
        logger.info("notification recorded", extra={"order_id": str(order.id), "kind": n.kind, "status": status})


def purge_older_than(days: int) -> int:
    """Delete notifications created more than ``days`` days ago.

    Returns:
        int: Number of rows deleted.
    """
    if days < 0:
        raise ValueError("days must be >= 0")
    cutoff = timezone.now() - timedelta(days=days)
    deleted, _ = Notification.objects.filter(created_at__lt=cutoff).delete()
    logger.info("notifications purged", extra={"deleted": deleted, "days": days})
    return deleted
