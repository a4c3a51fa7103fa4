# auradhom/services/notification_service.py
import logging
import threading

from auradhom.core.errors import PersistenceError
from auradhom.models.notification import Notification, NotificationKind
from auradhom.repositories.notification_repo import NotificationRepository
from auradhom.services.events import EventBus, NewOrderCreated

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Back-office notifications.

    Responsibilities:
      - one "new_order" notification per order id, even if the creation
        event is delivered more than once
      - read/unread bookkeeping
      - unread count computed from the current list on every call

    Store failures are logged; the notification stays visible in memory.
    """

    def __init__(self, repo: NotificationRepository, bus: EventBus | None = None):
        self.repo = repo
        self._lock = threading.RLock()
        self._notifications = self._load()
        self._notified_orders = {
            n.related_order_id
            for n in self._notifications
            if n.kind == "new_order" and n.related_order_id
        }
        self._last_order_id: str | None = None

        if bus is not None:
            bus.subscribe(NewOrderCreated, self.on_new_order)

    def _load(self) -> list[Notification]:
        try:
            notifications = self.repo.list_all()
        except PersistenceError as exc:
            logger.warning("Could not load notifications: %s", exc)
            return []
        return sorted(notifications, key=lambda n: n.created_at, reverse=True)

    # ---- Event handler ----

    def on_new_order(self, event: NewOrderCreated) -> Notification | None:
        order = event.order
        with self._lock:
            if order.id == self._last_order_id or order.id in self._notified_orders:
                logger.debug("Order %s already notified", order.order_number)
                return None

            self._last_order_id = order.id
            self._notified_orders.add(order.id)
            return self.notify(
                "new_order",
                f"Nouvelle commande {order.order_number} de "
                f"{order.customer.first_name} {order.customer.last_name}",
                related_order_id=order.id,
            )

    # ---- Operations ----

    def notify(
        self,
        kind: NotificationKind,
        message: str,
        related_order_id: str | None = None,
    ) -> Notification:
        notification = Notification(
            kind=kind,
            message=message,
            related_order_id=related_order_id,
        )
        with self._lock:
            self._notifications.insert(0, notification)
            try:
                self.repo.create(notification)
            except PersistenceError as exc:
                logger.warning("Notification %s not persisted: %s", notification.id, exc)
        return notification

    def list_notifications(self, limit: int | None = None) -> list[Notification]:
        with self._lock:
            items = list(self._notifications)
        return items[:limit] if limit is not None else items

    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for n in self._notifications if not n.read)

    def mark_read(self, notification_id: str) -> Notification | None:
        with self._lock:
            for index, n in enumerate(self._notifications):
                if n.id == notification_id:
                    if not n.read:
                        n = n.model_copy(update={"read": True})
                        self._notifications[index] = n
                        self._persist_read(n.id)
                    return n
        return None

    def mark_all_read(self) -> int:
        """Mark everything read; returns how many changed."""
        changed = 0
        with self._lock:
            for index, n in enumerate(self._notifications):
                if not n.read:
                    self._notifications[index] = n.model_copy(update={"read": True})
                    self._persist_read(n.id)
                    changed += 1
        return changed

    def remove(self, notification_id: str) -> bool:
        with self._lock:
            before = len(self._notifications)
            self._notifications = [
                n for n in self._notifications if n.id != notification_id
            ]
            if len(self._notifications) == before:
                return False
            try:
                self.repo.delete(notification_id)
            except PersistenceError as exc:
                logger.warning("Notification %s not deleted in store: %s", notification_id, exc)
        return True

    def _persist_read(self, notification_id: str) -> None:
        try:
            self.repo.set_read(notification_id)
        except PersistenceError as exc:
            logger.warning("Read flag for %s not persisted: %s", notification_id, exc)
