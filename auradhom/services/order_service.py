# auradhom/services/order_service.py
import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Callable
from datetime import datetime, timezone

from auradhom.core.errors import (
    DuplicateOrderError,
    InvalidTransitionError,
    PersistenceError,
    ValidationError,
)
from auradhom.models.order import CustomerSnapshot, LineItem, Order, utcnow
from auradhom.repositories.order_repo import OrderRepository
from auradhom.schemas.order import OrderFilters
from auradhom.services.events import (
    EventBus,
    NewOrderCreated,
    OrderRejected,
    OrderResynced,
    OrderValidated,
)

logger = logging.getLogger(__name__)

ORDER_NUMBER_PREFIX = "ADH"


def generate_order_number() -> str:
    """
    Customer-facing number: ADH-<epoch millis>-<0..999>.

    Collisions are unlikely but possible; creation treats an existing
    number as a duplicate instead of overwriting it.
    """
    timestamp = int(time.time() * 1000)
    return f"{ORDER_NUMBER_PREFIX}-{timestamp}-{random.randint(0, 999)}"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class CreateOrderResult:
    """
    Outcome of a checkout.

    `warning` is set when the store rejected the write: the order is
    visible to the back office and backed up, but still has to be synced.
    """

    order: Order
    warning: PersistenceError | None = None

    @property
    def sync_pending(self) -> bool:
        return self.warning is not None


class OrderService:
    """
    Order lifecycle: creation, validation, rejection.

    Responsibilities:
      - Validate checkout input and freeze totals
      - Reject duplicate order numbers
      - Enforce pending -> validated | rejected (terminal states)
      - Keep the back office aware of orders the store could not take
      - Publish lifecycle events for notifications and backups

    Operations run one at a time; a transition either completes
    (store + views + event) or leaves everything as it was.
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        bus: EventBus,
        unsynced_reader: Callable[[], list[Order]] | None = None,
    ):
        self.order_repo = order_repo
        self.bus = bus
        # Source of orders the store never acknowledged (the backup cache)
        self.unsynced_reader = unsynced_reader
        self._lock = threading.RLock()

    # -------- Checkout --------

    def create_order(
        self,
        customer: CustomerSnapshot,
        line_items: list[LineItem],
        outbound_message: str,
        shipping_cost: float = 0.0,
        order_number: str | None = None,
    ) -> CreateOrderResult:
        """
        Create a pending order.

        Steps:
          1. Validate input (items, phone, shipping cost).
          2. Reject an already known order number.
          3. Compute subtotal/total from the items as they are now.
          4. Write to the store; on failure admit the order locally,
             flagged `pending_sync`, and return the failure as a warning.
          5. Publish NewOrderCreated (backup + notification).

        Raises:
            ValidationError: invalid input, nothing written.
            DuplicateOrderError: order number already used.
        """
        self._validate_checkout(customer, line_items, shipping_cost)

        with self._lock:
            order_number = (order_number or "").strip() or generate_order_number()

            existing = self.order_repo.find_by_order_number(order_number)
            if existing is not None:
                raise DuplicateOrderError(existing)

            subtotal = sum(item.line_total for item in line_items)
            order = Order(
                order_number=order_number,
                customer=customer.model_copy(deep=True),
                line_items=[item.model_copy(deep=True) for item in line_items],
                subtotal=subtotal,
                shipping_cost=shipping_cost,
                total=subtotal + shipping_cost,
                status="pending",
                outbound_message=outbound_message,
                sync_status="synced",
            )

            warning: PersistenceError | None = None
            try:
                self.order_repo.save(order)
            except PersistenceError as exc:
                order = order.model_copy(update={"sync_status": "pending_sync"})
                self.order_repo.admit(order)
                warning = exc
                logger.warning(
                    "Order %s admitted locally, store write failed: %s",
                    order.order_number,
                    exc,
                )
            else:
                logger.info("Order %s created", order.order_number)

            self.bus.publish(NewOrderCreated(order))
            return CreateOrderResult(order=order, warning=warning)

    def _validate_checkout(
        self,
        customer: CustomerSnapshot,
        line_items: list[LineItem],
        shipping_cost: float,
    ) -> None:
        if not line_items:
            raise ValidationError("Order must contain at least one item")
        if not (customer.phone or "").strip():
            raise ValidationError("Customer phone number is required for delivery")
        if shipping_cost < 0:
            raise ValidationError("Shipping cost cannot be negative")

    # -------- Admin transitions --------

    def validate_order(self, order_id: str, validated_by: str) -> Order:
        """
        pending -> validated.

        Raises:
            ValidationError: empty actor.
            InvalidTransitionError: order missing or not pending.
            PersistenceError: store write failed; views unchanged, retry allowed.
        """
        actor = (validated_by or "").strip()
        if not actor:
            raise ValidationError("validated_by is required")

        with self._lock:
            current = self._require_pending(order_id)
            updated = Order.model_validate(
                {
                    **current.model_dump(),
                    "status": "validated",
                    "validated_at": utcnow(),
                    "validated_by": actor,
                    "sync_status": "synced",
                }
            )
            self.order_repo.move(updated)
            logger.info("Order %s validated by %s", updated.order_number, actor)

            self.bus.publish(OrderValidated(updated))
            return updated

    def reject_order(self, order_id: str, rejected_by: str, rejection_reason: str) -> Order:
        """
        pending -> rejected. Same failure modes as `validate_order`,
        plus ValidationError for an empty reason.
        """
        actor = (rejected_by or "").strip()
        reason = (rejection_reason or "").strip()
        if not actor:
            raise ValidationError("rejected_by is required")
        if not reason:
            raise ValidationError("A rejection reason is required")

        with self._lock:
            current = self._require_pending(order_id)
            updated = Order.model_validate(
                {
                    **current.model_dump(),
                    "status": "rejected",
                    "rejected_at": utcnow(),
                    "rejected_by": actor,
                    "rejection_reason": reason,
                    "sync_status": "synced",
                }
            )
            self.order_repo.move(updated)
            logger.info("Order %s rejected by %s", updated.order_number, actor)

            self.bus.publish(OrderRejected(updated))
            return updated

    def _require_pending(self, order_id: str) -> Order:
        order = self.order_repo.get(order_id)
        if order is None:
            raise InvalidTransitionError(order_id, None)
        if order.status != "pending":
            raise InvalidTransitionError(order_id, order.status)
        return order

    # -------- Queries --------

    def get_order(self, order_id: str) -> Order | None:
        return self.order_repo.get(order_id)

    def filter_orders(self, filters: OrderFilters) -> list[Order]:
        """
        All filters combine with AND; newest first.
        """
        orders = self.order_repo.list_orders(filters.status)

        if filters.date_from is not None:
            date_from = _as_utc(filters.date_from)
            orders = [o for o in orders if o.created_at >= date_from]
        if filters.date_to is not None:
            date_to = _as_utc(filters.date_to)
            orders = [o for o in orders if o.created_at <= date_to]
        if filters.order_number:
            needle = filters.order_number.lower()
            orders = [o for o in orders if needle in o.order_number.lower()]
        if filters.customer_name:
            needle = filters.customer_name.lower()
            orders = [
                o
                for o in orders
                if needle in o.customer.first_name.lower()
                or needle in o.customer.last_name.lower()
                or needle in o.customer.full_name.lower()
            ]

        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def counts(self) -> dict[str, int]:
        return self.order_repo.counts()

    # -------- Sync --------

    def refresh_from_store(self) -> None:
        """
        Reload the views, then re-admit orders that only ever reached the
        backup cache so they stay visible and eligible for resync.
        """
        with self._lock:
            self.order_repo.refresh_from_store()
            if self.unsynced_reader is None:
                return
            recovered = self.order_repo.recover(self.unsynced_reader())
        if recovered:
            logger.warning("Recovered %d unsynced order(s) from the backup", recovered)

    def resync_orders(self) -> dict[str, int]:
        """
        Retry the store write for every locally admitted order.

        Successes become `synced`; failures are flagged `failed` and stay
        eligible for the next run.
        """
        synced = 0
        failed = 0
        with self._lock:
            for order in self.order_repo.list_needing_sync():
                candidate = order.model_copy(update={"sync_status": "synced"})
                try:
                    self.order_repo.save(candidate)
                except PersistenceError as exc:
                    self.order_repo.admit(order.model_copy(update={"sync_status": "failed"}))
                    failed += 1
                    logger.warning("Resync of %s failed: %s", order.order_number, exc)
                else:
                    synced += 1
                    self.bus.publish(OrderResynced(candidate))

        logger.info("Resync finished: %d synced, %d failed", synced, failed)
        return {"synced": synced, "failed": failed}
