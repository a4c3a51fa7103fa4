# auradhom/services/events.py
"""
Lifecycle events and the in-process bus that delivers them.

Subscribers are independent: one failing handler is logged and the
remaining handlers still receive the event.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, TypeVar

from auradhom.models.order import Order

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderEvent:
    order: Order


@dataclass(frozen=True)
class NewOrderCreated(OrderEvent):
    """Raised once per order id, whether or not the store acknowledged it."""


@dataclass(frozen=True)
class OrderValidated(OrderEvent):
    pass


@dataclass(frozen=True)
class OrderRejected(OrderEvent):
    pass


@dataclass(frozen=True)
class OrderResynced(OrderEvent):
    """A locally admitted order finally reached the store."""


E = TypeVar("E", bound=OrderEvent)
Handler = Callable[[OrderEvent], None]


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        self._handlers[event_type].append(handler)  # type: ignore[arg-type]

    def publish(self, event: OrderEvent) -> None:
        for handler in list(self._handlers[type(event)]):
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %r failed for %s (order %s)",
                    handler,
                    type(event).__name__,
                    event.order.order_number,
                )
