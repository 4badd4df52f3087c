"""Pydantic schemas for the address book.

``AddressPatchDTO`` makes partial updates explicit: a field is updated
only when the client sent it (tracked by ``model_fields_set``), so an
omitted field and an explicit value are never confused.
"""

import re
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

POSTAL_RE = re.compile(r"^\d{8}$")
UF_RE = re.compile(r"^[A-Z]{2}$")


def _postal(v: str) -> str:
    digits = "".join(ch for ch in v if ch.isdigit())
    if not POSTAL_RE.match(digits):
        raise ValueError("Postal code must have 8 digits")
    return digits


def _state(v: str) -> str:
    v2 = v.strip().upper()
    if not UF_RE.match(v2):
        raise ValueError("State must be a 2-letter code")
    return v2


class AddressIn(BaseModel):
    recipient: str = Field(min_length=1, max_length=120)
    street: str = Field(min_length=1, max_length=200)
    number: str = Field(default="", max_length=20)
    district: str = Field(default="", max_length=120)
    city: str = Field(min_length=1, max_length=120)
    state: str
    postal_code: str

    @field_validator("state")
    @classmethod
    def validate_state(cls, v: str) -> str:
        return _state(v)

    @field_validator("postal_code")
    @classmethod
    def validate_postal(cls, v: str) -> str:
        return _postal(v)


class AddressPatchDTO(BaseModel):
    """Partial update for an address; ``None`` is not a valid value."""

    model_config = ConfigDict(extra="forbid")

    recipient: str | None = Field(default=None, min_length=1, max_length=120)
    street: str | None = Field(default=None, min_length=1, max_length=200)
    number: str | None = Field(default=None, max_length=20)
    district: str | None = Field(default=None, max_length=120)
    city: str | None = Field(default=None, min_length=1, max_length=120)
    state: str | None = None
    postal_code: str | None = None

    @field_validator("state")
    @classmethod
    def validate_state(cls, v):
        return None if v is None else _state(v)

    @field_validator("postal_code")
    @classmethod
    def validate_postal(cls, v):
        return None if v is None else _postal(v)

    def changes(self) -> dict:
        """Return only the fields the client sent.

        Raises:
            ValueError: When a sent field is explicitly null.
        """
        sent = {name: getattr(self, name) for name in self.model_fields_set}
        nulls = sorted(k for k, v in sent.items() if v is None)
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return sent


class AddressOut(BaseModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    recipient: str
    street: str
    number: str
    district: str
    city: str
    state: str
    postal_code: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, a) -> "AddressOut":
        return cls(
            id=a.id,
            customer_id=a.customer_id,
            recipient=a.recipient,
            street=a.street,
            number=a.number,
            district=a.district,
            city=a.city,
            state=a.state,
            postal_code=a.postal_code,
            created_at=a.created_at,
            updated_at=a.updated_at,
        )
