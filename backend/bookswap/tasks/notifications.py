from __future__ import annotations

import logging
from typing import Any, Dict

from bookswap.core.celery_app import celery_app
from bookswap.core.database import transaction
from bookswap.models import Book, Listing, PhysicalBook
from bookswap.models.notification import KIND_WISHLIST_AVAILABLE
from bookswap.services import notifications, wishlist
from bookswap.tasks._db import task_session


logger = logging.getLogger(__name__)


# Celery 任务：新上架时通知心愿单关注者
@celery_app.task
def notify_wishlist_watchers(listing_id: str) -> Dict[str, Any]:
    with task_session() as db:
        listing = db.get(Listing, listing_id)
        if not listing:
            return {"error": "LISTING_NOT_FOUND"}
        if not listing.is_active:
            return {"listing_id": listing_id, "notified": 0, "status": "INACTIVE"}
        copy = db.get(PhysicalBook, listing.physical_book_id)
        book = db.get(Book, copy.book_id) if copy else None
        if not book:
            return {"error": "BOOK_NOT_FOUND"}

        user_ids = wishlist.watchers(db, book.id, exclude_user_id=listing.owner_id)
        with transaction(db):
            for user_id in user_ids:
                notifications.notify(
                    db,
                    user_id,
                    KIND_WISHLIST_AVAILABLE,
                    f'"{book.title}" is now available in {listing.location}.',
                    book_id=book.id,
                    listing_id=listing.id,
                )
        logger.info(f"Listing {listing_id}: notified {len(user_ids)} wishlist watchers")
        return {"listing_id": listing_id, "notified": len(user_ids)}
