"""Pydantic schemas for checkout and order reads."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from apps.payments.domain import PaymentMethod, PaymentSelection


class PaymentIn(BaseModel):
    """Payment selection sent with the checkout confirmation.

    Attributes:
        method: PIX, CARD or BOLETO (case insensitive).
        card_token: Tokenized card; required for CARD.
        card_brand: Optional display brand, e.g. ``visa``.
        card_last4: Optional display digits; derived from the token if absent.
    """

    method: PaymentMethod
    card_token: Optional[str] = Field(default=None, min_length=4, max_length=128)
    card_brand: Optional[str] = Field(default=None, max_length=32)
    card_last4: Optional[str] = Field(default=None, pattern=r"^\d{4}$")

    @field_validator("method", mode="before")
    @classmethod
    def upper_method(cls, v):
        return v.upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def card_needs_token(self):
        if self.method is PaymentMethod.CARD and not self.card_token:
            raise ValueError("card_token is required for CARD payments")
        return self

    def to_selection(self) -> PaymentSelection:
        return PaymentSelection(
            method=self.method,
            card_token=self.card_token,
            card_brand=self.card_brand,
            card_last4=self.card_last4,
        )


class CheckoutConfirmDTO(BaseModel):
    address_id: uuid.UUID
    payment: PaymentIn
    idempotency_key: Optional[str] = Field(default=None, max_length=128)


class FinalizeCartDTO(BaseModel):
    idempotency_key: Optional[str] = Field(default=None, max_length=128)


class StatusUpdateDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: str

    @field_validator("status")
    @classmethod
    def upper_status(cls, v: str) -> str:
        return v.strip().upper()


class OrderLineOut(BaseModel):
    product_id: uuid.UUID
    product_name: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal


class PaymentOut(BaseModel):
    method: str
    status: str
    amount: Decimal
    provider_reference: Optional[str] = None
    card_brand: Optional[str] = None
    card_last4: Optional[str] = None
    boleto_line: Optional[str] = None
    boleto_expires_at: Optional[datetime] = None
    qr_payload: Optional[str] = None
    paid_at: Optional[datetime] = None


class OrderReadDTO(BaseModel):
    id: uuid.UUID
    number: str
    customer_id: uuid.UUID
    address_id: Optional[uuid.UUID] = None
    status: str
    total: Decimal
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    decline_code: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    paid_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    estimated_delivery: Optional[date] = None
    lines: List[OrderLineOut] = []
    payment: Optional[PaymentOut] = None

    @classmethod
    def from_model(cls, o, with_lines: bool = True) -> "OrderReadDTO":
        # Reverse one-to-one raises when no payment row exists.
        payment = getattr(o, "payment", None)
        return cls(
            id=o.id,
            number=o.number,
            customer_id=o.customer_id,
            address_id=o.address_id,
            status=o.status,
            total=o.total,
            payment_method=o.payment_method or None,
            payment_status=o.payment_status or None,
            decline_code=o.decline_code or None,
            created_at=o.created_at,
            updated_at=o.updated_at,
            paid_at=o.paid_at,
            canceled_at=o.canceled_at,
            estimated_delivery=o.estimated_delivery,
            lines=[
                OrderLineOut(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    subtotal=line.subtotal,
                )
                for line in o.lines.all()
            ]
            if with_lines
            else [],
            payment=_payment_out(payment),
        )


def _payment_out(p) -> Optional[PaymentOut]:
    if p is None:
        return None
    return PaymentOut(
        method=p.method,
        status=p.status,
        amount=p.amount,
        provider_reference=p.provider_reference or None,
        card_brand=p.card_brand or None,
        card_last4=p.card_last4 or None,
        boleto_line=p.boleto_line,
        boleto_expires_at=p.boleto_expires_at,
        qr_payload=p.qr_payload or None,
        paid_at=p.paid_at,
    )
