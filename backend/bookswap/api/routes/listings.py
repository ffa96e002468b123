from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from kombu.exceptions import OperationalError as BrokerError
from sqlalchemy.orm import Session

from bookswap.core.auth import UserContext, get_current_user
from bookswap.core.database import get_db
from bookswap.core.schemas import BookOut, ListingCreate, ListingListResponse, ListingOut, PhysicalBookOut
from bookswap.models import Listing
from bookswap.services import catalog
from bookswap.tasks.notifications import notify_wishlist_watchers


logger = logging.getLogger(__name__)

router = APIRouter()


def _to_out(db: Session, listing: Listing) -> ListingOut:
    copy = catalog.get_physical_book(db, listing.physical_book_id)
    return ListingOut(
        **ListingOut.model_validate(listing).model_dump(exclude={"physical_book", "book", "points"}),
        physical_book=PhysicalBookOut.model_validate(copy),
        book=BookOut.model_validate(catalog.get_book(db, copy.book_id)),
        points=catalog.points_for(db, copy),
    )


@router.get("", response_model=ListingListResponse)
def list_listings(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    query: str | None = Query(None, max_length=200),
    db: Session = Depends(get_db),
) -> ListingListResponse:
    rows = catalog.list_active_listings(db, limit=limit, offset=offset, query=query)
    return ListingListResponse(listings=[_to_out(db, row) for row in rows])


@router.post("", response_model=ListingOut)
def create_listing(
    payload: ListingCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> ListingOut:
    listing = catalog.create_listing(
        db,
        payload.physical_book_id,
        user.user_id,
        payload.location,
        images=[image.model_dump() for image in payload.images],
    )
    # 提交后再派发，任务进程才能读到新上架记录；上架已生效，通知失败不回滚
    try:
        notify_wishlist_watchers.delay(listing.id)
    except BrokerError as exc:
        logger.error(f"Listing {listing.id}: wishlist notification not queued: {exc}")
    return _to_out(db, listing)


@router.delete("/{listing_id}", response_model=ListingOut)
def remove_listing(
    listing_id: str,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> ListingOut:
    listing = catalog.remove_listing(db, listing_id, user.user_id)
    logger.info(f"Listing {listing_id} removed by {user.user_id}")
    return _to_out(db, listing)
