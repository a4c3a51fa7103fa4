# auradhom/models/order.py
import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import model_validator
from sqlmodel import SQLModel, Field

OrderStatus = Literal["pending", "validated", "rejected"]
SyncStatus = Literal["synced", "pending_sync", "failed"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CustomerSnapshot(SQLModel):
    """
    Delivery contact captured at checkout.

    Stored inside the order and never updated afterwards, even if the
    customer changes their details for a later order.
    """

    first_name: str
    last_name: str
    address: str
    department: str = Field(description="Administrative region id, e.g. 'brazzaville'")
    city: str
    district: str
    phone: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class LineItem(SQLModel):
    """
    One purchased product, priced at the time of the order.
    """

    product_id: str
    name: str
    size: str | None = None
    color: str | None = None
    quantity: int = Field(gt=0, description="Quantity ordered (>=1)")
    unit_price: float = Field(ge=0, description="Unit price at time of order")

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price


class Order(SQLModel):
    """
    Customer order as stored in the orders_* collections.

    Lifecycle:
      pending -> validated | rejected (both terminal)

    validated_at/validated_by exist only on validated orders,
    rejected_at/rejected_by/rejection_reason only on rejected ones.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    order_number: str

    customer: CustomerSnapshot
    line_items: list[LineItem]

    subtotal: float
    shipping_cost: float = 0.0
    total: float

    status: OrderStatus = "pending"
    created_at: datetime = Field(default_factory=utcnow)

    validated_at: datetime | None = None
    validated_by: str | None = None

    rejected_at: datetime | None = None
    rejected_by: str | None = None
    rejection_reason: str | None = None

    # WhatsApp summary generated at checkout, kept verbatim for resend
    outbound_message: str = ""

    sync_status: SyncStatus = "synced"

    @model_validator(mode="after")
    def check_transition_fields(self) -> "Order":
        validated = (self.validated_at, self.validated_by)
        rejected = (self.rejected_at, self.rejected_by, self.rejection_reason)

        if self.status == "validated":
            ok = all(validated) and not any(rejected)
        elif self.status == "rejected":
            ok = all(rejected) and not any(validated)
        else:
            ok = not any(validated) and not any(rejected)

        if not ok:
            raise ValueError(f"transition fields do not match status '{self.status}'")
        return self
