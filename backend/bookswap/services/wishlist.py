from __future__ import annotations

import logging
from datetime import datetime
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookswap.core.database import transaction
from bookswap.core.errors import NotFoundError
from bookswap.models import WishlistItem
from bookswap.services import catalog


logger = logging.getLogger(__name__)


def find_item(db: Session, user_id: str, book_id: str) -> WishlistItem | None:
    return (
        db.query(WishlistItem)
        .filter(WishlistItem.user_id == user_id, WishlistItem.book_id == book_id)
        .first()
    )


def add(db: Session, user_id: str, book_id: str, notify_on_available: bool = True) -> WishlistItem:
    catalog.get_book(db, book_id)
    existing = find_item(db, user_id, book_id)
    if existing:
        if existing.notify_on_available != notify_on_available:
            with transaction(db):
                existing.notify_on_available = notify_on_available
        return existing

    item = WishlistItem(
        id=uuid4().hex,
        user_id=user_id,
        book_id=book_id,
        notify_on_available=notify_on_available,
        created_at=datetime.utcnow(),
    )
    try:
        with transaction(db):
            db.add(item)
    except IntegrityError:
        winner = find_item(db, user_id, book_id)
        if not winner:
            raise
        return winner
    logger.info(f"User {user_id} is watching book {book_id}")
    return item


def list_items(db: Session, user_id: str) -> list[WishlistItem]:
    return (
        db.query(WishlistItem)
        .filter(WishlistItem.user_id == user_id)
        .order_by(WishlistItem.created_at.desc(), WishlistItem.id.desc())
        .all()
    )


def remove(db: Session, user_id: str, book_id: str) -> None:
    item = find_item(db, user_id, book_id)
    if not item:
        raise NotFoundError("Book is not on your wishlist.")
    with transaction(db):
        db.delete(item)


def watchers(db: Session, book_id: str, exclude_user_id: str | None = None) -> list[str]:
    query = db.query(WishlistItem.user_id).filter(
        WishlistItem.book_id == book_id,
        WishlistItem.notify_on_available.is_(True),
    )
    if exclude_user_id:
        query = query.filter(WishlistItem.user_id != exclude_user_id)
    return [row[0] for row in query.all()]
