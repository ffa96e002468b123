from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy.orm import Session

from bookswap.core.database import transaction
from bookswap.core.errors import NotFoundError
from bookswap.models import Notification


# 只写入会话，由调用方提交
def notify(
    db: Session,
    user_id: str,
    kind: str,
    message: str,
    book_id: str | None = None,
    listing_id: str | None = None,
) -> Notification:
    notification = Notification(
        id=uuid4().hex,
        user_id=user_id,
        kind=kind,
        message=message,
        book_id=book_id,
        listing_id=listing_id,
        is_read=False,
        created_at=datetime.utcnow(),
    )
    db.add(notification)
    return notification


def list_notifications(
    db: Session, user_id: str, unread_only: bool = False, limit: int = 50
) -> tuple[int, list[Notification]]:
    query = db.query(Notification).filter(Notification.user_id == user_id)
    unread = query.filter(Notification.is_read.is_(False)).count()
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    rows = (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )
    return unread, rows


def mark_notification_read(db: Session, notification_id: str, user_id: str) -> Notification:
    notification = db.get(Notification, notification_id)
    if not notification or notification.user_id != user_id:
        raise NotFoundError("Notification not found.")
    if not notification.is_read:
        with transaction(db):
            notification.is_read = True
    return notification
