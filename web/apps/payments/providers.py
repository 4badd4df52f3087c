"""Payment gateway wiring.

The gateway is chosen once from an explicit ``ProviderConfig`` built from
Django settings, instead of each call inspecting the environment. Tests and
alternative deployments swap it with ``set_payment_gateway``.
"""

import logging
from dataclasses import dataclass

from django.conf import settings

from .adapters import SimulatedPaymentGateway
from .domain import PaymentGateway
from .http_adapters import CircuitBreaker, HttpPaymentGateway

logger = logging.getLogger("payments")

PROVIDERS = ("simulated", "http")


@dataclass(frozen=True)
class ProviderConfig:
    provider: str = "simulated"
    base_url: str = "http://payments:9002"
    simulated_delay_secs: float = 1.0
    timeout_secs: float = 10.0
    boleto_min_days: int = 3
    boleto_max_days: int = 7
    http_timeout_secs: float = 5.0
    retry_max: int = 3
    retry_backoff_base: float = 0.15
    retry_max_sleep: float = 0.5
    circuit_fail_threshold: int = 5
    circuit_reset_timeout: float = 30.0

    @classmethod
    def from_settings(cls) -> "ProviderConfig":
        provider = getattr(settings, "PAYMENT_PROVIDER", "simulated")
        if provider not in PROVIDERS:
            raise ValueError(f"PAYMENT_PROVIDER must be one of {PROVIDERS}, got {provider!r}")
        return cls(
            provider=provider,
            base_url=settings.PAYMENTS_BASE_URL,
            simulated_delay_secs=settings.PAYMENT_SIMULATED_DELAY_SECS,
            timeout_secs=settings.PAYMENT_TIMEOUT_SECS,
            boleto_min_days=settings.BOLETO_MIN_EXPIRY_DAYS,
            boleto_max_days=settings.BOLETO_MAX_EXPIRY_DAYS,
            http_timeout_secs=settings.HTTP_TIMEOUT_SECS,
            retry_max=settings.HTTP_RETRY_MAX,
            retry_backoff_base=settings.HTTP_RETRY_BACKOFF_BASE,
            retry_max_sleep=settings.HTTP_RETRY_MAX_SLEEP,
            circuit_fail_threshold=settings.HTTP_CIRCUIT_FAIL_THRESHOLD,
            circuit_reset_timeout=settings.HTTP_CIRCUIT_RESET_TIMEOUT,
        )


def build_payment_gateway(config: ProviderConfig) -> PaymentGateway:
    if config.provider == "http":
        return HttpPaymentGateway(
            base_url=config.base_url,
            timeout=config.http_timeout_secs,
            breaker=CircuitBreaker(
                "payments",
                fail_threshold=config.circuit_fail_threshold,
                reset_timeout=config.circuit_reset_timeout,
            ),
            retry_max=config.retry_max,
            backoff_base=config.retry_backoff_base,
            max_sleep=config.retry_max_sleep,
        )
    return SimulatedPaymentGateway(
        delay_secs=config.simulated_delay_secs,
        timeout_secs=config.timeout_secs,
        boleto_min_days=config.boleto_min_days,
        boleto_max_days=config.boleto_max_days,
    )


_gateway: PaymentGateway | None = None


def get_payment_gateway() -> PaymentGateway:
    global _gateway
    if _gateway is None:
        config = ProviderConfig.from_settings()
        _gateway = build_payment_gateway(config)
        logger.info("payment gateway configured", extra={"provider": config.provider})
    return _gateway


def set_payment_gateway(gateway: PaymentGateway | None) -> None:
    global _gateway
    _gateway = gateway


def reset_payment_gateway() -> None:
    set_payment_gateway(None)
