# auradhom/schemas/notification.py
from sqlmodel import SQLModel


class UnreadCount(SQLModel):
    unread: int
