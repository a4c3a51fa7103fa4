# auradhom/routers/notifications.py
from fastapi import APIRouter, Depends, HTTPException, status

from auradhom.core.auth import require_admin
from auradhom.deps import get_notification_service
from auradhom.models.notification import Notification
from auradhom.schemas.notification import UnreadCount
from auradhom.services.notification_service import NotificationService

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=list[Notification])
def list_notifications(
    limit: int | None = None,
    service: NotificationService = Depends(get_notification_service),
):
    """
    Newest first; `limit` keeps only the latest N.
    """
    return service.list_notifications(limit)


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(service: NotificationService = Depends(get_notification_service)):
    return UnreadCount(unread=service.unread_count())


@router.post("/read-all", response_model=UnreadCount)
def mark_all_read(service: NotificationService = Depends(get_notification_service)):
    service.mark_all_read()
    return UnreadCount(unread=service.unread_count())


@router.post("/{notification_id}/read", response_model=Notification)
def mark_read(
    notification_id: str,
    service: NotificationService = Depends(get_notification_service),
):
    notification = service.mark_read(notification_id)
    if notification is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )
    return notification


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: str,
    service: NotificationService = Depends(get_notification_service),
):
    if not service.remove(notification_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )
