"""In-process simulated payment provider.

Deterministic enough for tests and local development: PIX always succeeds,
card outcomes are driven by the token's last four digits and boleto slips
are issued as pending. A configurable delay stands in for provider latency;
it is never longer than the configured timeout.
"""

import logging
import random
import secrets
import time
import uuid
from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

from .domain import PaymentGateway, PaymentResult, PaymentStatus

logger = logging.getLogger("payments")

# Last four digits of a card token -> provider decline code.
CARD_DECLINES = {
    "0000": ("card_declined", "Your card was declined."),
    "1111": ("insufficient_funds", "Your card has insufficient funds."),
    "2222": ("expired_card", "Your card has expired."),
}

BOLETO_LINE_LENGTH = 47


class SimulatedPaymentGateway(PaymentGateway):
    def __init__(
        self,
        delay_secs: float = 1.0,
        timeout_secs: float = 10.0,
        boleto_min_days: int = 3,
        boleto_max_days: int = 7,
        sleep=time.sleep,
    ):
        self.delay_secs = max(0.0, min(delay_secs, timeout_secs))
        self.boleto_min_days = boleto_min_days
        self.boleto_max_days = max(boleto_min_days, boleto_max_days)
        self._sleep = sleep

    def _latency(self):
        if self.delay_secs > 0:
            self._sleep(self.delay_secs)

    def process_pix(self, order_id, amount: Decimal, idempotency_key: str | None = None) -> PaymentResult:
        self._latency()
        ref = f"pix_sim_{uuid.uuid4().hex}"
        payload = f"00020126PIX{ref}5204000053039865406{amount:.2f}"
        logger.info("pix simulated", extra={"order_id": str(order_id), "reference": ref})
        return PaymentResult(
            succeeded=True,
            status=PaymentStatus.SUCCEEDED,
            provider_reference=ref,
            artifacts={"qr_payload": payload},
        )

    def process_card(
        self, order_id, amount: Decimal, card_token: str, idempotency_key: str | None = None
    ) -> PaymentResult:
        self._latency()
        if not card_token:
            return PaymentResult.declined("invalid_token", "Card token is required.")
        decline = CARD_DECLINES.get(card_token[-4:])
        if decline:
            logger.info("card simulated decline", extra={"order_id": str(order_id), "error_code": decline[0]})
            return PaymentResult.declined(*decline)
        ref = f"pi_sim_{uuid.uuid4().hex}"
        logger.info("card simulated", extra={"order_id": str(order_id), "reference": ref})
        return PaymentResult(succeeded=True, status=PaymentStatus.SUCCEEDED, provider_reference=ref)

    def generate_boleto(self, order_id, amount: Decimal, customer, idempotency_key: str | None = None) -> PaymentResult:
        self._latency()
        # Digits only, so the line can travel in a URL path as-is.
        line = "".join(str(secrets.randbelow(10)) for _ in range(BOLETO_LINE_LENGTH))
        expires_at = timezone.now() + timedelta(days=random.randint(self.boleto_min_days, self.boleto_max_days))
        logger.info("boleto simulated", extra={"order_id": str(order_id)})
        return PaymentResult(
            succeeded=True,
            status=PaymentStatus.PENDING,
            provider_reference=f"bol_sim_{uuid.uuid4().hex}",
            artifacts={"digital_line": line, "expires_at": expires_at},
        )

    def confirm_boleto(self, digital_line: str) -> PaymentResult:
        self._latency()
        if not digital_line:
            return PaymentResult.declined("invalid_digital_line", "Digital line is required.")
        return PaymentResult(succeeded=True, status=PaymentStatus.SUCCEEDED)
