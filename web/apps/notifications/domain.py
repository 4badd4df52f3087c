"""Notification kinds, message templates and the gateway port."""

from enum import Enum
from typing import Protocol

STATUS_TEMPLATES = {
    "NEW": "Your order {ref} was received and is awaiting confirmation.",
    "PROCESSING": "Your order {ref} is being processed.",
    "PAID": "Payment confirmed! Your order {ref} was approved.",
    "SHIPPED": "Your order {ref} was shipped and is on its way!",
    "DELIVERED": "Your order {ref} was delivered.",
    "CANCELED": "Your order {ref} was canceled.",
}

CONFIRMATION_TEMPLATE = "Your order {ref} was confirmed! Total: R$ {total}"


class NotificationKind(str, Enum):
    CONFIRMATION = "CONFIRMATION"
    STATUS = "STATUS"


def status_message(order_number: str, status: str) -> str:
    return STATUS_TEMPLATES[status].format(ref=order_number)


def confirmation_message(order_number: str, total) -> str:
    return CONFIRMATION_TEMPLATE.format(ref=order_number, total=f"{total:.2f}")


class NotificationGateway(Protocol):
    """Port used by checkout and the state machine to tell customers things.

    Delivery (e-mail, SMS, webhooks) is outside this project; implementations
    only have to record what was sent.
    """

    def notify_confirmation(self, order) -> None: ...

    def notify_status(self, order, status: str) -> None: ...
