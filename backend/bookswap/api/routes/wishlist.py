from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bookswap.core.auth import UserContext, get_current_user
from bookswap.core.database import get_db
from bookswap.core.schemas import BookOut, OkResponse, WishlistCreate, WishlistItemOut, WishlistResponse
from bookswap.models import WishlistItem
from bookswap.services import catalog, wishlist


router = APIRouter()


def _to_out(db: Session, item: WishlistItem) -> WishlistItemOut:
    return WishlistItemOut(
        id=item.id,
        book_id=item.book_id,
        notify_on_available=item.notify_on_available,
        book=BookOut.model_validate(catalog.get_book(db, item.book_id)),
        created_at=item.created_at,
    )


@router.get("", response_model=WishlistResponse)
def list_wishlist(
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> WishlistResponse:
    return WishlistResponse(items=[_to_out(db, item) for item in wishlist.list_items(db, user.user_id)])


@router.post("", response_model=WishlistItemOut)
def add_to_wishlist(
    payload: WishlistCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> WishlistItemOut:
    item = wishlist.add(db, user.user_id, payload.book_id, payload.notify_on_available)
    return _to_out(db, item)


@router.delete("/{book_id}", response_model=OkResponse)
def remove_from_wishlist(
    book_id: str,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> OkResponse:
    wishlist.remove(db, user.user_id, book_id)
    return OkResponse()
