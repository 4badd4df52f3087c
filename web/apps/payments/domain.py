"""Payment methods, normalized results and the payment gateway port.

Every provider, simulated or remote, answers with a ``PaymentResult`` so
checkout never has to know which one is wired in.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Protocol


class PaymentMethod(str, Enum):
    PIX = "PIX"
    CARD = "CARD"
    BOLETO = "BOLETO"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class PaymentResult:
    """Normalized outcome of a gateway call.

    Attributes:
        succeeded: True when money was captured (or, for boleto, the slip
            was issued and is awaiting payment).
        status: Provider-side status of the payment.
        provider_reference: Provider id of the payment (``pi_...``, ``pix_...``).
        artifacts: Method specific data, e.g. ``qr_payload`` for PIX or
            ``digital_line``/``expires_at`` for boleto.
        error_code: Provider decline code such as ``card_declined``.
        error_message: Human readable decline reason.
    """

    succeeded: bool
    status: PaymentStatus
    provider_reference: Optional[str] = None
    artifacts: dict = field(default_factory=dict)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def declined(cls, error_code: str, error_message: str | None = None) -> "PaymentResult":
        return cls(
            succeeded=False,
            status=PaymentStatus.FAILED,
            error_code=error_code,
            error_message=error_message or error_code,
        )


@dataclass(frozen=True)
class PaymentSelection:
    """Payment method chosen at checkout plus the card details, if any."""

    method: PaymentMethod
    card_token: Optional[str] = None
    card_brand: Optional[str] = None
    card_last4: Optional[str] = None


class PaymentGateway(Protocol):
    """Port for capturing payments.

    ``idempotency_key`` is forwarded to providers that support it so a
    retried checkout never charges twice.
    """

    def process_pix(self, order_id, amount: Decimal, idempotency_key: str | None = None) -> PaymentResult:
        """Charge ``amount`` through PIX for ``order_id``."""
        raise NotImplementedError()

    def process_card(
        self, order_id, amount: Decimal, card_token: str, idempotency_key: str | None = None
    ) -> PaymentResult:
        """Charge a tokenized card. Declines come back as a failed result."""
        raise NotImplementedError()

    def generate_boleto(self, order_id, amount: Decimal, customer, idempotency_key: str | None = None) -> PaymentResult:
        """Issue a boleto slip; the result is always ``pending``."""
        raise NotImplementedError()

    def confirm_boleto(self, digital_line: str) -> PaymentResult:
        """Ask the provider whether the slip identified by ``digital_line`` was paid."""
        raise NotImplementedError()


class GatewayUnavailable(Exception):
    """The provider could not be reached, timed out or its circuit is open."""
