import pytest

from auradhom.core.errors import PersistenceError
from auradhom.database import make_engine
from auradhom.models.order import CustomerSnapshot, LineItem
from auradhom.repositories.gateway import PersistenceGateway
from auradhom.repositories.notification_repo import NotificationRepository
from auradhom.repositories.order_repo import OrderRepository
from auradhom.repositories.stores import LocalStore
from auradhom.services.backup_service import BackupService
from auradhom.services.events import EventBus, NewOrderCreated
from auradhom.services.notification_service import NotificationService
from auradhom.services.order_service import OrderService


class FlakyStore:
    """LocalStore wrapper whose calls can be made to fail like a dropped backend."""

    name = "flaky"

    def __init__(self, inner: LocalStore):
        self.inner = inner
        self.failing = False
        self.failing_deletes: set[str] = set()

    def _check(self):
        if self.failing:
            raise PersistenceError("store unreachable")

    def put(self, collection, record_id, data):
        self._check()
        self.inner.put(collection, record_id, data)

    def get_all(self, collection, filters=None):
        self._check()
        return self.inner.get_all(collection, filters)

    def get_one(self, collection, record_id):
        self._check()
        return self.inner.get_one(collection, record_id)

    def delete(self, collection, record_id):
        self._check()
        if collection in self.failing_deletes:
            raise PersistenceError(f"delete from {collection} failed")
        self.inner.delete(collection, record_id)

    def ping(self):
        self._check()


@pytest.fixture
def store(tmp_path):
    return FlakyStore(LocalStore(make_engine(f"sqlite:///{tmp_path / 'orders.sqlite3'}")))


@pytest.fixture
def gateway(store):
    return PersistenceGateway(store)


@pytest.fixture
def backup_store(tmp_path):
    return FlakyStore(LocalStore(make_engine(f"sqlite:///{tmp_path / 'backup.sqlite3'}")))


@pytest.fixture
def backup_gateway(backup_store):
    return PersistenceGateway(backup_store)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def created_events(bus):
    events = []
    bus.subscribe(NewOrderCreated, events.append)
    return events


@pytest.fixture
def backup_service(backup_gateway, bus):
    return BackupService(backup_gateway, bus)


@pytest.fixture
def notification_service(gateway, bus):
    return NotificationService(NotificationRepository(gateway), bus)


@pytest.fixture
def order_repo(gateway):
    return OrderRepository(gateway)


@pytest.fixture
def order_service(order_repo, bus, backup_service, notification_service):
    return OrderService(order_repo, bus, unsynced_reader=backup_service.list_unsynced)


@pytest.fixture
def customer():
    return CustomerSnapshot(
        first_name="Grace",
        last_name="Mabiala",
        address="12 rue Mbaka",
        department="brazzaville",
        city="brazzaville-city",
        district="Poto-Poto",
        phone="+242 06 123 4567",
    )


@pytest.fixture
def items():
    return [
        LineItem(product_id="tee-aura", name="T-shirt Aura", size="M", color="Noir", quantity=1, unit_price=10000),
        LineItem(product_id="cap-aura", name="Casquette Aura", quantity=2, unit_price=5000),
    ]
