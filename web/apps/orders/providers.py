"""Wiring for the checkout core.

Collaborators are built once per process from settings and handed to the
services by constructor, so nothing below re-reads configuration per
call. ``set_*`` functions let tests inject fakes; ``reset_providers``
drops everything so the next call rebuilds from current settings.
"""

from apps.notifications.adapters import DatabaseNotificationGateway
from apps.notifications.domain import NotificationGateway
from apps.payments.providers import get_payment_gateway, reset_payment_gateway
from .checkout import CheckoutOrchestrator
from .state_machine import OrderStateMachine

_notifier: NotificationGateway | None = None


def get_notification_gateway() -> NotificationGateway:
    global _notifier
    if _notifier is None:
        _notifier = DatabaseNotificationGateway()
    return _notifier


def set_notification_gateway(notifier: NotificationGateway | None) -> None:
    global _notifier
    _notifier = notifier


def get_state_machine() -> OrderStateMachine:
    return OrderStateMachine(get_notification_gateway())


def get_checkout_orchestrator() -> CheckoutOrchestrator:
    return CheckoutOrchestrator(
        payments=get_payment_gateway(),
        notifier=get_notification_gateway(),
    )


def reset_providers() -> None:
    set_notification_gateway(None)
    reset_payment_gateway()
