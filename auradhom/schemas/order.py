# auradhom/schemas/order.py
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from auradhom.models.order import CustomerSnapshot, LineItem, Order, OrderStatus


class OrderCreate(SQLModel):
    """
    Checkout payload sent by the storefront.

    User provides:
      - customer delivery contact
      - line items (priced by the cart at checkout time)
      - shipping_cost (optional, defaults to 0)
      - order_number (optional; resend the same value when retrying a
        checkout so it is not recorded twice)
      - outbound_message (optional; generated if missing)

    Backend derives:
      - id, created_at
      - subtotal and total
      - status = 'pending'
    """

    model_config = ConfigDict(extra="forbid")

    customer: CustomerSnapshot
    items: list[LineItem]
    shipping_cost: float = 0.0
    order_number: str | None = None
    outbound_message: str | None = None

    @field_validator("order_number", "outbound_message")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class OrderFilters(SQLModel):
    """
    Admin order search. Every filter is optional; they combine with AND.
    """

    status: OrderStatus | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    order_number: str | None = Field(default=None, description="Substring match")
    customer_name: str | None = Field(
        default=None, description="Case-insensitive substring of first/last name"
    )


class OrderReject(SQLModel):
    """
    Admin payload to reject a pending order.
    """

    model_config = ConfigDict(extra="forbid")

    reason: str


class CheckoutResponse(SQLModel):
    """
    Result of a checkout.

    sync_pending=True means the order is placed and visible to the shop
    but has not reached the durable store yet; `warning` says why.
    """

    order: Order
    sync_pending: bool = False
    warning: str | None = None
    whatsapp_url: str


class OrderCounts(SQLModel):
    pending: int
    validated: int
    rejected: int


class ResyncResult(SQLModel):
    synced: int
    failed: int


class WhatsAppLink(SQLModel):
    url: str
