from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bookswap.core.auth import UserContext, get_current_user
from bookswap.core.database import get_db
from bookswap.core.schemas import BookOut, DisputeCreate, DisputeOut, ExchangeCreate, ExchangeOut
from bookswap.models import ExchangeRequest
from bookswap.services import accounts, catalog, disputes, exchanges


router = APIRouter()


def exchange_out(db: Session, exchange: ExchangeRequest) -> ExchangeOut:
    copy = catalog.get_physical_book(db, exchange.physical_book_id)
    names = accounts.user_names(db, [exchange.giver_id, exchange.receiver_id])
    return ExchangeOut(
        **ExchangeOut.model_validate(exchange).model_dump(
            exclude={"book", "giver_name", "receiver_name"}
        ),
        book=BookOut.model_validate(catalog.get_book(db, copy.book_id)),
        giver_name=names.get(exchange.giver_id),
        receiver_name=names.get(exchange.receiver_id),
    )


@router.post("", response_model=ExchangeOut)
def request_exchange(
    payload: ExchangeCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> ExchangeOut:
    exchange = exchanges.initiate(db, payload.physical_book_id, user.user_id)
    return exchange_out(db, exchange)


@router.get("/{exchange_id}", response_model=ExchangeOut)
def get_exchange(
    exchange_id: str,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> ExchangeOut:
    if user.is_admin:
        exchange = exchanges.get_exchange(db, exchange_id)
    else:
        exchange = exchanges.get_for_party(db, exchange_id, user.user_id)
    return exchange_out(db, exchange)


@router.put("/{exchange_id}/accept", response_model=ExchangeOut)
def accept_exchange(
    exchange_id: str,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> ExchangeOut:
    return exchange_out(db, exchanges.accept(db, exchange_id, user.user_id))


@router.put("/{exchange_id}/reject", response_model=ExchangeOut)
def reject_exchange(
    exchange_id: str,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> ExchangeOut:
    return exchange_out(db, exchanges.reject(db, exchange_id, user.user_id))


@router.post("/{exchange_id}/disputes", response_model=DisputeOut)
def file_dispute(
    exchange_id: str,
    payload: DisputeCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> DisputeOut:
    dispute = disputes.file_dispute(
        db, exchange_id, user.user_id, payload.reason, description=payload.description
    )
    return DisputeOut.model_validate(dispute)
