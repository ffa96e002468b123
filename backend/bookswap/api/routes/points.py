from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bookswap.core.auth import UserContext, get_current_user
from bookswap.core.database import get_db
from bookswap.core.schemas import (
    BalanceOut,
    BuyPointsRequest,
    BuyPointsResponse,
    PaymentOut,
    PointTransactionListResponse,
    PointTransactionOut,
)
from bookswap.services import ledger, payments


router = APIRouter()


@router.get("/points/balance", response_model=BalanceOut)
def get_balance(
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> BalanceOut:
    return BalanceOut(user_id=user.user_id, **ledger.get_balance_summary(db, user.user_id))


@router.get("/points/transactions", response_model=PointTransactionListResponse)
def list_transactions(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> PointTransactionListResponse:
    total, rows = ledger.list_transactions(db, user.user_id, limit=limit, offset=offset)
    return PointTransactionListResponse(
        total=total,
        transactions=[PointTransactionOut.model_validate(row) for row in rows],
    )


@router.post("/buy-points", response_model=BuyPointsResponse)
def buy_points(
    payload: BuyPointsRequest,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> BuyPointsResponse:
    card = payload.card_details
    payment, balance = payments.buy_points(
        db, user.user_id, payload.points, card.number, card.expiry, card.cvc
    )
    return BuyPointsResponse(payment=PaymentOut.model_validate(payment), balance=balance)


@router.get("/points/payments", response_model=list[PaymentOut])
def list_payments(
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> list[PaymentOut]:
    rows = payments.list_payments(db, user.user_id, limit=limit)
    return [PaymentOut.model_validate(row) for row in rows]
