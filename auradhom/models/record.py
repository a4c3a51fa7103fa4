# auradhom/models/record.py
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field

from auradhom.models.order import utcnow


class StoredRecord(SQLModel, table=True):
    """
    Generic row for the local stores.

    Every logical collection (orders_pending, notifications, orders_backup...)
    shares this table; (collection, id) is the primary key and the record
    itself is kept as JSON.
    """

    __tablename__ = "records"

    collection: str = Field(primary_key=True)
    id: str = Field(primary_key=True)

    data: dict[str, Any] = Field(sa_column=Column(JSON, nullable=False))

    updated_at: datetime = Field(
        default_factory=utcnow,
        description="Last write timestamp (UTC)",
    )
