# auradhom/repositories/notification_repo.py
from auradhom.models.notification import Notification
from auradhom.repositories.gateway import PersistenceGateway

COLLECTION = "notifications"


class NotificationRepository:
    """
    Data access for back-office notifications.
    """

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    def list_all(self) -> list[Notification]:
        rows = self.gateway.get_all(COLLECTION)
        return [Notification.model_validate(row) for row in rows]

    def create(self, notification: Notification) -> None:
        self.gateway.put(COLLECTION, notification.model_dump(mode="json"))

    def set_read(self, notification_id: str) -> None:
        self.gateway.update(COLLECTION, notification_id, {"read": True})

    def delete(self, notification_id: str) -> None:
        self.gateway.delete(COLLECTION, notification_id)
