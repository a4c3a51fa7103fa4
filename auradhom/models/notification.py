# auradhom/models/notification.py
import uuid
from datetime import datetime
from typing import Literal

from sqlmodel import SQLModel, Field

from auradhom.models.order import utcnow

NotificationKind = Literal["new_order", "info", "success", "error"]


class Notification(SQLModel):
    """
    Back-office notification.

    Only `read` changes after creation; removal is an explicit admin action.
    """

    id: str = Field(default_factory=lambda: f"notif_{uuid.uuid4().hex}")
    kind: NotificationKind
    message: str
    related_order_id: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    read: bool = False
