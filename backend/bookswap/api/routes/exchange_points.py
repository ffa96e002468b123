from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bookswap.core.auth import UserContext, get_current_user
from bookswap.core.database import get_db
from bookswap.core.schemas import ExchangePointCreate, ExchangePointOut, ExchangePointUpdate, OkResponse
from bookswap.services import exchange_points


router = APIRouter()


@router.get("", response_model=list[ExchangePointOut])
def list_exchange_points(db: Session = Depends(get_db)) -> list[ExchangePointOut]:
    return [ExchangePointOut.model_validate(row) for row in exchange_points.list_points(db)]


@router.post("", response_model=ExchangePointOut)
def create_exchange_point(
    payload: ExchangePointCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> ExchangePointOut:
    point = exchange_points.create_point(db, user.user_id, payload.model_dump())
    return ExchangePointOut.model_validate(point)


@router.put("/{point_id}", response_model=ExchangePointOut)
def update_exchange_point(
    point_id: str,
    payload: ExchangePointUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> ExchangePointOut:
    point = exchange_points.update_point(
        db, point_id, user.user_id, payload.model_dump(exclude_unset=True), is_admin=user.is_admin
    )
    return ExchangePointOut.model_validate(point)


@router.delete("/{point_id}", response_model=OkResponse)
def delete_exchange_point(
    point_id: str,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> OkResponse:
    exchange_points.delete_point(db, point_id, user.user_id, is_admin=user.is_admin)
    return OkResponse()
