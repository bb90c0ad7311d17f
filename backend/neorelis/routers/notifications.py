from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from neorelis.core.auth import get_current_user
from neorelis.core.deps import get_db
from neorelis.models.user import User
from neorelis.schemas.auth import MessageResponse
from neorelis.schemas.notification import (
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from neorelis.services import notifications as notification_service

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(notification_service.DEFAULT_LIST_LIMIT, ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Current user's notifications, most recent first (limit capped at 100)."""
    items = notification_service.list_notifications(db, user.id, limit=limit, unread_only=unread_only)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in items],
        unread_count=notification_service.unread_count(db, user.id),
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_unread_count(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Badge polling."""
    return UnreadCountResponse(unread_count=notification_service.unread_count(db, user.id))


@router.put("/read-all", response_model=MessageResponse)
def mark_all_read(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    notification_service.mark_all_as_read(db, user.id)
    return MessageResponse(message="All notifications marked as read")


@router.put("/{notification_id}/read", response_model=MessageResponse)
def mark_read(notification_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    notification_service.mark_as_read(db, notification_id, user.id)
    return MessageResponse(message="Notification marked as read")


@router.delete("/{notification_id}", response_model=MessageResponse)
def delete_notification(
    notification_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    notification_service.delete_notification(db, notification_id, user.id)
    return MessageResponse(message="Notification deleted")
