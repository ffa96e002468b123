from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bookswap.core.auth import UserContext, get_current_user
from bookswap.core.database import get_db
from bookswap.core.schemas import NotificationListResponse, NotificationOut
from bookswap.services import notifications


router = APIRouter()


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> NotificationListResponse:
    unread, rows = notifications.list_notifications(db, user.user_id, unread_only=unread_only, limit=limit)
    return NotificationListResponse(
        unread=unread,
        notifications=[NotificationOut.model_validate(row) for row in rows],
    )


@router.put("/{notification_id}/read", response_model=NotificationOut)
def mark_notification_read(
    notification_id: str,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> NotificationOut:
    notification = notifications.mark_notification_read(db, notification_id, user.user_id)
    return NotificationOut.model_validate(notification)
