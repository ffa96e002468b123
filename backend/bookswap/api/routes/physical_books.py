from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bookswap.core.auth import UserContext, get_current_user
from bookswap.core.database import get_db
from bookswap.core.schemas import (
    BookOut,
    HistoryCreate,
    HistoryOut,
    ListingSummary,
    PhysicalBookCreate,
    PhysicalBookDetail,
    PhysicalBookOut,
    PhysicalBookUpdate,
    ValuationOut,
)
from bookswap.models import PhysicalBook
from bookswap.services import accounts, catalog


router = APIRouter()


def physical_book_detail(db: Session, copy: PhysicalBook) -> PhysicalBookDetail:
    listing = catalog.get_active_listing(db, copy.id)
    owner_names = accounts.user_names(db, [copy.owner_id])
    return PhysicalBookDetail(
        **PhysicalBookOut.model_validate(copy).model_dump(),
        book=BookOut.model_validate(catalog.get_book(db, copy.book_id)),
        owner_name=owner_names.get(copy.owner_id),
        listing=ListingSummary.model_validate(listing) if listing else None,
        valuations=[ValuationOut.model_validate(row) for row in catalog.list_valuations(db, copy.id)],
        estimated_points=catalog.points_for(db, copy),
    )


@router.post("", response_model=PhysicalBookOut)
def register_physical_book(
    payload: PhysicalBookCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> PhysicalBookOut:
    copy = catalog.register_physical_copy(
        db, payload.book_id, user.user_id, payload.condition, payload.location
    )
    return PhysicalBookOut.model_validate(copy)


@router.get("/{physical_book_id}", response_model=PhysicalBookDetail)
def get_physical_book(physical_book_id: str, db: Session = Depends(get_db)) -> PhysicalBookDetail:
    return physical_book_detail(db, catalog.get_physical_book(db, physical_book_id))


@router.put("/{physical_book_id}", response_model=PhysicalBookOut)
def update_physical_book(
    physical_book_id: str,
    payload: PhysicalBookUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> PhysicalBookOut:
    copy = catalog.update_physical_copy(
        db,
        physical_book_id,
        user.user_id,
        condition=payload.condition,
        location=payload.location,
        is_available=payload.is_available,
    )
    return PhysicalBookOut.model_validate(copy)


@router.get("/{physical_book_id}/history", response_model=list[HistoryOut])
def list_history(physical_book_id: str, db: Session = Depends(get_db)) -> list[HistoryOut]:
    return [HistoryOut.model_validate(row) for row in catalog.list_history(db, physical_book_id)]


@router.post("/{physical_book_id}/history", response_model=HistoryOut)
def add_history(
    physical_book_id: str,
    payload: HistoryCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> HistoryOut:
    entry = catalog.add_history_entry(
        db,
        physical_book_id,
        accounts.get_user(db, user.user_id),
        city=payload.city,
        reading_start=payload.reading_start,
        reading_end=payload.reading_end,
        notes=payload.notes,
        tips=payload.tips,
        rating=payload.rating,
    )
    return HistoryOut.model_validate(entry)
