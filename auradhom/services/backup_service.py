# auradhom/services/backup_service.py
import logging
from datetime import datetime

from auradhom.core.errors import BackupError
from auradhom.models.order import Order, utcnow
from auradhom.repositories.gateway import PersistenceGateway
from auradhom.services.events import (
    EventBus,
    NewOrderCreated,
    OrderEvent,
    OrderRejected,
    OrderResynced,
    OrderValidated,
)

logger = logging.getLogger(__name__)

COLLECTION = "orders_backup"
STATUSES = ("pending", "validated", "rejected")


class BackupService:
    """
    Secondary copy of every order in a local cache.

    The cache has its own gateway over a local store, independent of the
    primary backend. A failed backup is logged and never reaches the
    caller of the order operation.
    """

    def __init__(self, gateway: PersistenceGateway, bus: EventBus | None = None):
        self.gateway = gateway
        if bus is not None:
            for event_type in (NewOrderCreated, OrderValidated, OrderRejected, OrderResynced):
                bus.subscribe(event_type, self.on_order_event)

    def on_order_event(self, event: OrderEvent) -> None:
        self.backup_order(event.order)

    def backup_order(self, order: Order) -> bool:
        """
        Insert or replace `order` (matched by id or order number).

        Returns False if the backup could not be written.
        """
        try:
            self._write(order)
        except BackupError:
            logger.exception("Backup of order %s failed", order.order_number)
            return False
        logger.info("Order %s backed up (%s)", order.order_number, order.status)
        return True

    def _write(self, order: Order) -> None:
        try:
            same_number = self.gateway.get_all(
                COLLECTION, {"order_number": order.order_number}
            )
            for stale in same_number:
                if stale["id"] != order.id:
                    self.gateway.delete(COLLECTION, stale["id"])
            self.gateway.put(COLLECTION, order.model_dump(mode="json"))
        except Exception as exc:
            raise BackupError(str(exc)) from exc

    def list_unsynced(self) -> list[Order]:
        """Backed-up orders the primary store never acknowledged."""
        try:
            records = self.gateway.get_all(COLLECTION)
        except Exception:
            logger.exception("Could not read the backup cache")
            return []
        return [
            Order.model_validate(record)
            for record in records
            if record.get("sync_status", "synced") != "synced"
        ]

    def export_all(self, now: datetime | None = None) -> dict:
        """
        Snapshot of the backup cache, bucketed by status.

        Format:
          {exportDate, totalOrders, pending, validated, rejected,
           orders: {pending: [...], validated: [...], rejected: [...]}}
        """
        records = self.gateway.get_all(COLLECTION)
        buckets: dict[str, list[dict]] = {status: [] for status in STATUSES}
        for record in records:
            buckets[record["status"]].append(record)
        for bucket in buckets.values():
            bucket.sort(key=lambda r: r.get("created_at", ""), reverse=True)

        return {
            "exportDate": (now or utcnow()).isoformat(),
            "totalOrders": len(records),
            "pending": len(buckets["pending"]),
            "validated": len(buckets["validated"]),
            "rejected": len(buckets["rejected"]),
            "orders": {status: buckets[status] for status in STATUSES},
        }

    @staticmethod
    def export_filename(now: datetime | None = None) -> str:
        return f"commandes-auradhom-{(now or utcnow()).date().isoformat()}.json"
