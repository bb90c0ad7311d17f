"""In-app notifications, always scoped to the owning user."""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from neorelis.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 30
MAX_LIST_LIMIT = 100


def create_notification(
    db: Session,
    user_id: str,
    type: NotificationType,
    title: str,
    message: str,
    data: Optional[dict] = None,
) -> Notification:
    notification = Notification(
        id=str(uuid.uuid4()),
        user_id=user_id,
        type=type.value,
        title=title,
        message=message,
        data=data,
        read=False,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def notify_best_effort(
    db: Session,
    user_id: str,
    type: NotificationType,
    title: str,
    message: str,
    data: Optional[dict] = None,
) -> Optional[Notification]:
    """Create a notification; a failure is logged and never reaches the caller."""
    try:
        return create_notification(db, user_id, type, title, message, data)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to create %s notification for user %s", type.value, user_id)
        return None


def list_notifications(
    db: Session, user_id: str, limit: int = DEFAULT_LIST_LIMIT, unread_only: bool = False
) -> List[Notification]:
    q = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        q = q.filter(Notification.read.is_(False))
    return q.order_by(Notification.created_at.desc()).limit(min(limit, MAX_LIST_LIMIT)).all()


def unread_count(db: Session, user_id: str) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .count()
    )


def mark_as_read(db: Session, notification_id: str, user_id: str) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
        .update({"read": True}, synchronize_session=False)
    )
    db.commit()
    return updated


def mark_all_as_read(db: Session, user_id: str) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .update({"read": True}, synchronize_session=False)
    )
    db.commit()
    return updated


def delete_notification(db: Session, notification_id: str, user_id: str) -> int:
    deleted = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted
