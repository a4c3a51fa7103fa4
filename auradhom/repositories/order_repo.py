# auradhom/repositories/order_repo.py
import logging
import threading

from auradhom.core.errors import PersistenceError
from auradhom.models.order import Order, OrderStatus
from auradhom.repositories.gateway import PersistenceGateway

logger = logging.getLogger(__name__)

# One collection per lifecycle view
COLLECTIONS: dict[str, str] = {
    "pending": "orders_pending",
    "validated": "orders_validated",
    "rejected": "orders_rejected",
}


def _record(order: Order) -> dict:
    return order.model_dump(mode="json")


class OrderRepository:
    """
    Data access layer for orders plus the in-memory views the dashboard reads.

    The three views (pending / validated / rejected) are a write-through
    cache of the store. Every order id lives in exactly one view; the
    lock makes moves between views indivisible for readers.

    NOTE:
      - Store writes happen before the cache is touched. If the store
        fails, the cache is unchanged and PersistenceError propagates.
      - `admit()` is the only way to put an order in the cache without
        a store write (degraded checkout).
    """

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway
        self._views: dict[str, dict[str, Order]] = {s: {} for s in COLLECTIONS}
        self._lock = threading.RLock()

    # ---- Cache ----

    def refresh_from_store(self) -> None:
        """
        Reload all three views from the store.

        Orders admitted locally but never synced are kept. If an id shows
        up in a terminal collection and in pending (a move interrupted
        half-way), the terminal copy wins. If it is both validated and
        rejected, the later decision wins.
        """
        loaded: dict[str, dict[str, Order]] = {s: {} for s in COLLECTIONS}
        for status, collection in COLLECTIONS.items():
            for raw in self.gateway.get_all(collection):
                order = Order.model_validate(raw)
                loaded[status][order.id] = order

        for order_id in list(loaded["pending"]):
            if order_id in loaded["validated"] or order_id in loaded["rejected"]:
                del loaded["pending"][order_id]

        for order_id in set(loaded["validated"]) & set(loaded["rejected"]):
            validated = loaded["validated"][order_id]
            rejected = loaded["rejected"][order_id]
            if rejected.rejected_at >= validated.validated_at:
                winner, loser = "rejected", "validated"
            else:
                winner, loser = "validated", "rejected"
            logger.warning(
                "Order %s is stored as validated and rejected; keeping the %s copy",
                validated.order_number,
                winner,
            )
            del loaded[loser][order_id]

        with self._lock:
            known = set().union(*(view.keys() for view in loaded.values()))
            for order in self._views["pending"].values():
                if order.sync_status != "synced" and order.id not in known:
                    loaded["pending"][order.id] = order
            self._views = loaded

        logger.info(
            "Order views refreshed: %s",
            {status: len(view) for status, view in loaded.items()},
        )

    def admit(self, order: Order) -> None:
        """Place an order in the view matching its status (cache only)."""
        with self._lock:
            for view in self._views.values():
                view.pop(order.id, None)
            self._views[order.status][order.id] = order

    # ---- Reads ----

    def get(self, order_id: str) -> Order | None:
        with self._lock:
            for view in self._views.values():
                if order_id in view:
                    return view[order_id]
        return None

    def list_orders(self, status: OrderStatus | None = None) -> list[Order]:
        with self._lock:
            if status is not None:
                return list(self._views[status].values())
            return [o for view in self._views.values() for o in view.values()]

    def counts(self) -> dict[str, int]:
        with self._lock:
            return {status: len(view) for status, view in self._views.items()}

    def view_ids(self) -> dict[str, set[str]]:
        """Snapshot of the ids held by each view."""
        with self._lock:
            return {status: set(view) for status, view in self._views.items()}

    def list_needing_sync(self) -> list[Order]:
        with self._lock:
            return [
                o for o in self._views["pending"].values() if o.sync_status != "synced"
            ]

    def find_by_order_number(self, order_number: str) -> Order | None:
        """
        Look up an order by its customer-facing number.

        Cache first, then every collection in the store. A failing store
        lookup is logged and treated as "not found"; the following write
        will surface the outage.
        """
        with self._lock:
            for view in self._views.values():
                for order in view.values():
                    if order.order_number == order_number:
                        return order

        for collection in COLLECTIONS.values():
            try:
                rows = self.gateway.get_all(
                    collection, {"order_number": order_number}
                )
            except PersistenceError as exc:
                logger.warning(
                    "Duplicate check for %s skipped %s: %s",
                    order_number,
                    collection,
                    exc,
                )
                continue
            if rows:
                return Order.model_validate(rows[0])
        return None

    # ---- Writes ----

    def insert(self, order: Order) -> None:
        """Write an order to its status collection (store only)."""
        self.gateway.put(COLLECTIONS[order.status], _record(order))

    def save(self, order: Order) -> None:
        """Write to the store, then update the cache."""
        self.insert(order)
        self.admit(order)

    def move(self, order: Order) -> None:
        """
        Persist a pending order's terminal state and move it between views.

        Store: write the terminal collection, then delete from pending.
        If the delete fails the terminal write is undone before the error
        propagates, so the order stays pending everywhere.
        """
        terminal = COLLECTIONS[order.status]
        self.gateway.put(terminal, _record(order))
        try:
            self.gateway.delete(COLLECTIONS["pending"], order.id)
        except PersistenceError:
            try:
                self.gateway.delete(terminal, order.id)
            except PersistenceError as exc:
                logger.warning(
                    "Could not undo %s write for order %s: %s",
                    terminal,
                    order.order_number,
                    exc,
                )
            raise

        with self._lock:
            self._views["pending"].pop(order.id, None)
            self._views[order.status][order.id] = order

    def recover(self, orders: list[Order]) -> int:
        """Admit orders unknown to every view (cache only). Returns how many."""
        recovered = 0
        with self._lock:
            for order in orders:
                if self.get(order.id) is None:
                    self._views[order.status][order.id] = order
                    recovered += 1
        return recovered
