from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bookswap.api.routes.exchanges import exchange_out
from bookswap.api.routes.physical_books import physical_book_detail
from bookswap.core.auth import UserContext, get_current_user
from bookswap.core.database import get_db
from bookswap.core.errors import NotAuthorizedError
from bookswap.core.schemas import (
    ExchangeListResponse,
    PhysicalBookListResponse,
    UserOut,
    UserProfileOut,
    UserStats,
    UserUpdate,
)
from bookswap.services import accounts, catalog, exchanges


router = APIRouter()


def _profile(db: Session, user_id: str) -> UserProfileOut:
    account = accounts.get_user(db, user_id)
    return UserProfileOut(
        **UserOut.model_validate(account).model_dump(),
        stats=UserStats(**accounts.user_stats(db, account.id)),
    )


@router.get("/{user_id}", response_model=UserProfileOut)
def get_user_profile(user_id: str, db: Session = Depends(get_db)) -> UserProfileOut:
    return _profile(db, user_id)


@router.put("/{user_id}", response_model=UserProfileOut)
def update_user_profile(
    user_id: str,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> UserProfileOut:
    if user_id != user.user_id:
        raise NotAuthorizedError("You can only edit your own profile.")
    accounts.update_name(db, accounts.get_user(db, user_id), payload.name)
    return _profile(db, user_id)


@router.get("/{user_id}/exchanges", response_model=ExchangeListResponse)
def list_user_exchanges(
    user_id: str,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> ExchangeListResponse:
    if user_id != user.user_id and not user.is_admin:
        raise NotAuthorizedError("You can only view your own exchanges.")
    total, rows = exchanges.list_for_user(db, user_id, limit=limit, offset=offset)
    return ExchangeListResponse(total=total, exchanges=[exchange_out(db, row) for row in rows])


@router.get("/{user_id}/books", response_model=PhysicalBookListResponse)
def list_user_books(user_id: str, db: Session = Depends(get_db)) -> PhysicalBookListResponse:
    accounts.get_user(db, user_id)
    copies = catalog.list_copies_for_owner(db, user_id)
    return PhysicalBookListResponse(
        total=len(copies),
        physical_books=[physical_book_detail(db, copy) for copy in copies],
    )
