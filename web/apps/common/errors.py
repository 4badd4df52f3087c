"""Error taxonomy shared by the checkout apps.

Every failure that can leave a service boundary is one of the classes
below. Each class carries a stable machine-readable ``code`` and the HTTP
status the API layer maps it to, so views never inspect message strings.
"""


class DomainError(Exception):
    """Base class for classified checkout failures.

    Attributes:
        code: Stable uppercase error code rendered as ``detail``.
        status_code: HTTP status used by the API layer.
        message: Human-readable explanation safe to show to the caller.
    """

    code = "DOMAIN_ERROR"
    status_code = 400

    def __init__(self, message: str | None = None):
        self.message = message or self.code
        super().__init__(self.message)

    def as_body(self) -> dict:
        return {"detail": self.code, "message": self.message}


class ValidationError(DomainError):
    """Malformed input: bad quantity, unknown product, missing field."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFound(DomainError):
    """A referenced customer, order, product, address or payment does not exist."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, identifier=None):
        self.resource = resource
        self.identifier = identifier
        msg = f"{resource} not found" if identifier is None else f"{resource} not found: {identifier}"
        super().__init__(msg)


class OwnershipViolation(DomainError):
    """The caller does not own the referenced address, order or cart."""

    code = "OWNERSHIP_VIOLATION"
    status_code = 403


class EmptyCart(DomainError):
    code = "EMPTY_CART"
    status_code = 400

    def __init__(self, message: str | None = None):
        super().__init__(message or "Cart is empty or does not exist")


class InvalidTransition(DomainError):
    """A status change that is not an edge of the order state machine."""

    code = "INVALID_TRANSITION"
    status_code = 409

    def __init__(self, from_status, to_status, message: str | None = None):
        self.from_status = getattr(from_status, "value", from_status)
        self.to_status = getattr(to_status, "value", to_status)
        super().__init__(message or f"Transition {self.from_status} -> {self.to_status} is not allowed")

    def as_body(self) -> dict:
        body = super().as_body()
        body.update({"from": self.from_status, "to": self.to_status})
        return body


class PaymentDeclined(DomainError):
    """The payment provider refused the payment.

    Attributes:
        provider_code: Provider error code (e.g. ``card_declined``) when known.
        order_id: The order left in a not-paid state, if one was created.
    """

    code = "PAYMENT_DECLINED"
    status_code = 402

    def __init__(self, message: str | None = None, provider_code: str | None = None, order_id=None):
        self.provider_code = provider_code
        self.order_id = order_id
        super().__init__(message or "Payment was declined")

    def as_body(self) -> dict:
        body = super().as_body()
        if self.provider_code:
            body["provider_code"] = self.provider_code
        if self.order_id is not None:
            body["order_id"] = str(self.order_id)
        return body


class UpstreamUnavailable(DomainError):
    """The payment provider could not be reached or timed out."""

    code = "UPSTREAM_UNAVAILABLE"
    status_code = 503


class InternalError(DomainError):
    """Unexpected failure. The message is generic; details go to the log only."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str | None = None):
        super().__init__("Internal error")

    def as_body(self) -> dict:
        return {"detail": self.code}
