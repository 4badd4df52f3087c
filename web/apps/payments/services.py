"""Boleto settlement.

A boleto order waits in PROCESSING until the bank reports the slip paid.
``BoletoService.confirm`` is that report: it finds the pending payment by
its digital line, asks the provider to confirm and moves the order to PAID.
The provider call happens outside any row lock; the payment and the order
are then updated together, and the state machine rejects a second
confirmation of the same slip.
"""

import logging

from django.db import transaction
from django.utils import timezone

from apps.common import errors
from apps.orders.domain import OrderStatus
from apps.orders.state_machine import OrderStateMachine
from .domain import GatewayUnavailable, PaymentGateway, PaymentMethod, PaymentStatus
from .models import PaymentModel

logger = logging.getLogger("payments")


class BoletoService:
    def __init__(self, payments: PaymentGateway, states: OrderStateMachine):
        self.payments = payments
        self.states = states

    def _pending(self, digital_line: str) -> PaymentModel:
        payment = (
            PaymentModel.objects.select_related("order")
            .filter(boleto_line=digital_line, method=PaymentMethod.BOLETO.value)
            .first()
        )
        if payment is None:
            raise errors.NotFound("boleto", digital_line)
        if payment.order.status != OrderStatus.PROCESSING.value:
            raise errors.InvalidTransition(payment.order.status, OrderStatus.PAID)
        return payment

    def confirm(self, digital_line: str) -> PaymentModel:
        """Settle the boleto identified by ``digital_line``.

        Raises:
            errors.NotFound: No boleto payment with that line.
            errors.InvalidTransition: The order is not PROCESSING.
            errors.PaymentDeclined: The provider does not confirm the slip.
            errors.UpstreamUnavailable: The provider cannot be reached.
        """
        payment = self._pending(digital_line)
        try:
            result = self.payments.confirm_boleto(digital_line)
        except GatewayUnavailable as e:
            raise errors.UpstreamUnavailable("Payment provider is unavailable") from e
        if not result.succeeded:
            raise errors.PaymentDeclined(result.error_message, provider_code=result.error_code, order_id=payment.order_id)

        with transaction.atomic():
            locked = PaymentModel.objects.select_for_update().get(pk=payment.pk)
            locked.status = PaymentStatus.SUCCEEDED.value
            locked.paid_at = timezone.now()
            locked.save(update_fields=["status", "paid_at"])
            self.states.transition(locked.order_id, OrderStatus.PAID, payment_status=PaymentStatus.SUCCEEDED.value)

        logger.info("boleto confirmed", extra={"order_id": str(locked.order_id)})
        return PaymentModel.objects.select_related("order").get(pk=locked.pk)
