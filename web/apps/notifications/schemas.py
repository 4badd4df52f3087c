import uuid
from datetime import datetime

from pydantic import BaseModel


class NotificationOut(BaseModel):
    id: uuid.UUID
    order_id: uuid.UUID | None = None
    kind: str
    status: str | None = None
    message: str
    created_at: datetime

    @classmethod
    def from_model(cls, n) -> "NotificationOut":
        return cls(
            id=n.id,
            order_id=n.order_id,
            kind=n.kind,
            status=n.status or None,
            message=n.message,
            created_at=n.created_at,
        )
