"""HTTP client for the payments provider service.

``HttpPaymentGateway`` implements the ``PaymentGateway`` port over
``httpx`` and adds:

- Request correlation: the ``X-Request-ID`` of the inbound request (kept in
  a ContextVar by the gateway middleware) is forwarded.
- Idempotency: the checkout idempotency key travels as ``Idempotency-Key``
  so a retried charge is answered from the provider's replay table.
- Retries with exponential backoff on transport errors and HTTP 5xx.
- A circuit breaker, so an unhealthy provider fails fast with
  ``GatewayUnavailable`` instead of tying up workers.

Business answers (402 declined, 409 idempotency conflict) are results,
not failures: they never trip the breaker.
"""

import logging
import threading
import time
from typing import Optional

import httpx
from django.utils.dateparse import parse_datetime
from django.utils.module_loading import import_string

from .domain import GatewayUnavailable, PaymentGateway, PaymentResult, PaymentStatus

logger = logging.getLogger("payments")

REQUEST_ID_CTX = import_string("gateway.middleware.REQUEST_ID_CTX")

BUSINESS_STATUSES = (402, 409)


class CircuitOpenError(GatewayUnavailable):
    pass


class MalformedResponse(GatewayUnavailable):
    """The provider answered, but not with a payment result we can read."""


class CircuitBreaker:
    """Thread-safe CLOSED/OPEN/HALF_OPEN breaker.

    - CLOSED -> OPEN after ``fail_threshold`` consecutive failures.
    - OPEN -> HALF_OPEN once ``reset_timeout`` seconds have passed.
    - HALF_OPEN lets a single probe through; success closes the breaker,
      failure opens it again.
    """

    def __init__(self, name: str, fail_threshold: int = 5, reset_timeout: float = 30.0, clock=time.monotonic):
        self.name = name
        self.fail_threshold = fail_threshold
        self.reset_timeout = reset_timeout
        self._clock = clock
        self._lock = threading.RLock()
        self._failures = 0
        self._state = "CLOSED"
        self._opened_at = 0.0
        self._probe_in_flight = False

    @property
    def state(self) -> str:
        with self._lock:
            if self._state == "OPEN" and (self._clock() - self._opened_at) >= self.reset_timeout:
                self._state = "HALF_OPEN"
                self._probe_in_flight = False
            return self._state

    def before_call(self) -> str:
        """Admit a call or raise ``CircuitOpenError``.

        Returns:
            str: The state the call was admitted in.
        """
        with self._lock:
            st = self.state
            if st == "OPEN":
                raise CircuitOpenError(f"circuit {self.name} is open")
            if st == "HALF_OPEN":
                if self._probe_in_flight:
                    raise CircuitOpenError(f"circuit {self.name} is probing")
                self._probe_in_flight = True
            return st

    def on_success(self):
        with self._lock:
            self._failures = 0
            self._state = "CLOSED"
            self._probe_in_flight = False

    def on_failure(self):
        with self._lock:
            self._failures += 1
            if self._state == "HALF_OPEN" or (self._failures >= self.fail_threshold and self._state != "OPEN"):
                self._state = "OPEN"
                self._opened_at = self._clock()
                logger.warning("circuit opened", extra={"circuit": self.name, "failures": self._failures})
            self._probe_in_flight = False

    def on_finish(self):
        with self._lock:
            if self._state == "HALF_OPEN":
                self._probe_in_flight = False


def _request_headers(extra: Optional[dict] = None) -> dict:
    headers: dict[str, str] = {}
    rid = REQUEST_ID_CTX.get()
    if rid and rid != "-":
        headers["X-Request-ID"] = rid
    if extra:
        headers.update(extra)
    return headers


def _should_retry(resp: Optional[httpx.Response], exc: Optional[Exception]) -> bool:
    if exc is not None:
        return True
    return resp is not None and 500 <= resp.status_code < 600


def _result_from_response(resp: httpx.Response) -> PaymentResult:
    """Map a 2xx or business answer to a ``PaymentResult``.

    Raises:
        MalformedResponse: Body is not a JSON object or carries an
            unknown status.
    """
    try:
        data = resp.json() if resp.content else {}
        if resp.status_code in BUSINESS_STATUSES:
            return PaymentResult.declined(
                data.get("error_code") or ("idempotency_conflict" if resp.status_code == 409 else "payment_declined"),
                data.get("message"),
            )
        artifacts = dict(data.get("artifacts") or {})
        if isinstance(artifacts.get("expires_at"), str):
            artifacts["expires_at"] = parse_datetime(artifacts["expires_at"])
        status = PaymentStatus(data.get("status", PaymentStatus.SUCCEEDED.value))
    except (ValueError, TypeError, AttributeError) as e:
        raise MalformedResponse(f"unreadable provider answer ({resp.status_code})") from e
    return PaymentResult(
        succeeded=status != PaymentStatus.FAILED,
        status=status,
        provider_reference=data.get("reference"),
        artifacts=artifacts,
        error_code=data.get("error_code"),
        error_message=data.get("message"),
    )


class HttpPaymentGateway(PaymentGateway):
    """``PaymentGateway`` backed by the payments provider service."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        breaker: CircuitBreaker | None = None,
        retry_max: int = 3,
        backoff_base: float = 0.15,
        max_sleep: float = 0.5,
        sleep=time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.breaker = breaker or CircuitBreaker("payments")
        self.retry_max = max(1, retry_max)
        self.backoff_base = backoff_base
        self.max_sleep = max_sleep
        self._sleep = sleep

    def process_pix(self, order_id, amount, idempotency_key=None) -> PaymentResult:
        return self._post("/pix", {"order_id": str(order_id), "amount": str(amount)}, idempotency_key)

    def process_card(self, order_id, amount, card_token, idempotency_key=None) -> PaymentResult:
        payload = {"order_id": str(order_id), "amount": str(amount), "card_token": card_token}
        return self._post("/card", payload, idempotency_key)

    def generate_boleto(self, order_id, amount, customer, idempotency_key=None) -> PaymentResult:
        payload = {
            "order_id": str(order_id),
            "amount": str(amount),
            "payer_name": getattr(customer, "display_name", ""),
            "payer_email": getattr(customer, "email", ""),
        }
        return self._post("/boleto", payload, idempotency_key)

    def confirm_boleto(self, digital_line: str) -> PaymentResult:
        return self._post("/boleto/confirm", {"digital_line": digital_line}, idempotency_key=None)

    def _post(self, path: str, payload: dict, idempotency_key: str | None) -> PaymentResult:
        """POST with breaker precheck and bounded retries.

        Raises:
            GatewayUnavailable: Circuit open, or transport error / 5xx after
                the last retry.
            MalformedResponse: A 2xx or business answer that cannot be read.
        """
        extras = {"X-Retry-Count": "0"}
        if idempotency_key:
            extras["Idempotency-Key"] = idempotency_key

        state = self.breaker.before_call()
        extras["X-Circuit-State"] = state
        headers = _request_headers(extras)
        tries = 0

        try:
            with httpx.Client(timeout=self.timeout) as client:
                while True:
                    resp = None
                    exc = None
                    try:
                        resp = client.post(f"{self.base_url}{path}", json=payload, headers=headers)
                        if resp.status_code < 300 or resp.status_code in BUSINESS_STATUSES:
                            try:
                                result = _result_from_response(resp)
                            except MalformedResponse:
                                # Not retried: the provider may already have charged.
                                self.breaker.on_failure()
                                logger.error(
                                    "payments provider sent an unreadable answer",
                                    extra={"path": path, "status": resp.status_code},
                                )
                                raise
                            self.breaker.on_success()
                            return result
                        if not _should_retry(resp, None):
                            # Other 4xx: the provider rejected our request, not a provider outage.
                            self.breaker.on_success()
                            logger.error("payments provider rejected request", extra={"path": path, "status": resp.status_code})
                            return PaymentResult.declined("provider_rejected", f"provider answered {resp.status_code}")
                    except httpx.RequestError as e:
                        exc = e

                    tries += 1
                    headers["X-Retry-Count"] = str(tries)

                    if tries >= self.retry_max:
                        self.breaker.on_failure()
                        logger.warning(
                            "payments provider unavailable",
                            extra={"path": path, "tries": tries, "status": getattr(resp, "status_code", None)},
                        )
                        raise GatewayUnavailable(str(exc) if exc else f"provider answered {resp.status_code}")

                    self._sleep(min(self.backoff_base * (2 ** (tries - 1)), self.max_sleep))
        finally:
            self.breaker.on_finish()
