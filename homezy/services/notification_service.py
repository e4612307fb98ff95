"""
In-app notifications.

Rows are written in the caller's transaction and pushed over the realtime
channel when the recipient is connected.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..exceptions import NotFoundError
from ..models import Notification
from ..realtime import push_to_user

logger = logging.getLogger(__name__)


def serialize_notification(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "data": notification.data or {},
        "is_read": notification.is_read,
        "read_at": notification.read_at.isoformat() if notification.read_at else None,
        "created_at": notification.created_at.isoformat() if notification.created_at else None,
    }


def create_notification(
    db: Session,
    user_id: int,
    type: str,
    title: str,
    message: str,
    data: Optional[dict] = None,
    commit: bool = True,
) -> Notification:
    """Store a notification and push it to the user's open sockets"""
    notification = Notification(
        user_id=user_id, type=type, title=title, message=message, data=data or {}
    )
    db.add(notification)
    if commit:
        db.commit()
        db.refresh(notification)
    else:
        db.flush()

    push_to_user(user_id, "notification:new", serialize_notification(notification))
    logger.debug(f"🔔 Notification {type} for user {user_id}")
    return notification


class NotificationService:
    def __init__(self, db: Session):
        self.db = db

    def list_notifications(
        self, user_id: int, unread_only: bool = False, limit: int = 50, offset: int = 0
    ) -> dict:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        total = query.count()
        items = (
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return {
            "notifications": [serialize_notification(n) for n in items],
            "total": total,
            "unread_count": self.unread_count(user_id),
        }

    def unread_count(self, user_id: int) -> int:
        return (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
            .count()
        )

    def mark_read(self, notification_id: int, user_id: int) -> dict:
        notification = (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )
        if not notification:
            raise NotFoundError("Notification not found")
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(notification)
        return serialize_notification(notification)

    def mark_all_read(self, user_id: int) -> dict:
        updated = (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
            .update({"is_read": True, "read_at": datetime.utcnow()}, synchronize_session=False)
        )
        self.db.commit()
        return {"message": f"Marked {updated} notification(s) as read", "updated": updated}
