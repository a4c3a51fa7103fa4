# auradhom/deps.py
"""
Process-wide object graph.

Each factory is cached, so the backend is probed once and every request
shares the same gateway, views, event bus and subscribers. Tests swap
these out with `app.dependency_overrides`.
"""
from functools import lru_cache

from auradhom.core.config import get_settings
from auradhom.database import make_engine
from auradhom.repositories.gateway import PersistenceGateway
from auradhom.repositories.notification_repo import NotificationRepository
from auradhom.repositories.order_repo import OrderRepository
from auradhom.repositories.stores import LocalStore, select_backend
from auradhom.services.backup_service import BackupService
from auradhom.services.events import EventBus
from auradhom.services.notification_service import NotificationService
from auradhom.services.order_service import OrderService


@lru_cache
def get_gateway() -> PersistenceGateway:
    settings = get_settings()
    store = select_backend(
        settings,
        lambda: LocalStore(make_engine(settings.LOCAL_DATABASE_URL)),
    )
    return PersistenceGateway(store)


@lru_cache
def get_event_bus() -> EventBus:
    return EventBus()


@lru_cache
def get_backup_service() -> BackupService:
    settings = get_settings()
    backup_gateway = PersistenceGateway(
        LocalStore(make_engine(settings.BACKUP_DATABASE_URL))
    )
    return BackupService(backup_gateway, get_event_bus())


@lru_cache
def get_notification_service() -> NotificationService:
    return NotificationService(NotificationRepository(get_gateway()), get_event_bus())


@lru_cache
def get_order_service() -> OrderService:
    # Subscribers must exist before the first order is created
    get_backup_service()
    get_notification_service()
    return OrderService(
        OrderRepository(get_gateway()),
        get_event_bus(),
        unsynced_reader=get_backup_service().list_unsynced,
    )
