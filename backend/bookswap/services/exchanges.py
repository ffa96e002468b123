"""Exchange request state machine.

    pending --accept--> completed --dispute--> disputed
    pending --reject--> rejected

Every transition is a conditional UPDATE keyed on the status the caller
observed, so concurrent accepts (even across processes) produce exactly one
winner; the loser sees ``InvalidStateError``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import uuid4

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookswap.core.database import transaction
from bookswap.core.errors import (
    DuplicateRequestError,
    InvalidStateError,
    NotAuthorizedError,
    NotFoundError,
    SelfExchangeError,
)
from bookswap.models import ExchangeRequest, Listing
from bookswap.models.exchange_request import (
    STATUS_COMPLETED,
    STATUS_PENDING,
    STATUS_REJECTED,
)
from bookswap.models.points import TX_EARNED, TX_SPENT
from bookswap.services import catalog, ledger


logger = logging.getLogger(__name__)


def get_exchange(db: Session, exchange_id: str) -> ExchangeRequest:
    exchange = db.get(ExchangeRequest, exchange_id)
    if not exchange:
        raise NotFoundError("Exchange not found.")
    return exchange


def get_for_party(db: Session, exchange_id: str, user_id: str) -> ExchangeRequest:
    exchange = get_exchange(db, exchange_id)
    if user_id not in (exchange.giver_id, exchange.receiver_id):
        raise NotAuthorizedError("You are not part of this exchange.")
    return exchange


def list_for_user(
    db: Session, user_id: str, limit: int = 50, offset: int = 0
) -> tuple[int, list[ExchangeRequest]]:
    query = db.query(ExchangeRequest).filter(
        or_(ExchangeRequest.giver_id == user_id, ExchangeRequest.receiver_id == user_id)
    )
    total = query.count()
    rows = (
        query.order_by(ExchangeRequest.created_at.desc(), ExchangeRequest.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return total, rows


def transition(
    db: Session, exchange: ExchangeRequest, expected: str, target: str, **values
) -> None:
    """Compare-and-swap the status; raises if another writer got there first."""
    now = datetime.utcnow()
    updated = (
        db.query(ExchangeRequest)
        .filter(ExchangeRequest.id == exchange.id, ExchangeRequest.status == expected)
        .update({"status": target, "updated_at": now, **values}, synchronize_session=False)
    )
    if not updated:
        raise InvalidStateError(f"Exchange is no longer {expected}.")
    db.refresh(exchange)


def initiate(db: Session, physical_book_id: str, requester_id: str) -> ExchangeRequest:
    copy = catalog.get_physical_book(db, physical_book_id)
    listing = catalog.get_active_listing(db, copy.id)
    if not listing:
        raise InvalidStateError("This book is not listed for exchange.")
    if copy.owner_id == requester_id:
        raise SelfExchangeError()

    pending = (
        db.query(ExchangeRequest.id)
        .filter(
            ExchangeRequest.physical_book_id == copy.id,
            ExchangeRequest.receiver_id == requester_id,
            ExchangeRequest.status == STATUS_PENDING,
        )
        .first()
    )
    if pending:
        raise DuplicateRequestError()

    now = datetime.utcnow()
    exchange = ExchangeRequest(
        id=uuid4().hex,
        physical_book_id=copy.id,
        listing_id=listing.id,
        giver_id=copy.owner_id,
        receiver_id=requester_id,
        points_charged=catalog.points_for(db, copy),
        status=STATUS_PENDING,
        created_at=now,
        updated_at=now,
    )
    try:
        with transaction(db):
            db.add(exchange)
    except IntegrityError as exc:
        raise DuplicateRequestError() from exc
    logger.info(
        f"Exchange {exchange.id} requested: copy {copy.id} from {copy.owner_id} "
        f"to {requester_id} for {exchange.points_charged} points"
    )
    return exchange


def accept(db: Session, exchange_id: str, acting_user_id: str) -> ExchangeRequest:
    exchange = get_exchange(db, exchange_id)
    if exchange.giver_id != acting_user_id:
        raise NotAuthorizedError("Only the book owner can accept this request.")
    if exchange.status != STATUS_PENDING:
        raise InvalidStateError(f"Exchange is {exchange.status}, not pending.")

    with transaction(db):
        now = datetime.utcnow()
        transition(db, exchange, STATUS_PENDING, STATUS_COMPLETED, completed_at=now)

        ledger.apply_transaction(
            db,
            exchange.receiver_id,
            exchange.points_charged,
            TX_SPENT,
            "Received book in exchange",
            exchange_request_id=exchange.id,
        )
        ledger.apply_transaction(
            db,
            exchange.giver_id,
            exchange.points_charged,
            TX_EARNED,
            "Gave book in exchange",
            exchange_request_id=exchange.id,
        )

        copy = catalog.get_physical_book(db, exchange.physical_book_id)
        if copy.owner_id != exchange.giver_id:
            raise InvalidStateError("Book has changed hands since the request was made.")
        copy.owner_id = exchange.receiver_id
        copy.is_available = False
        copy.updated_at = now

        for listing in (
            db.query(Listing)
            .filter(Listing.physical_book_id == copy.id, Listing.is_active.is_(True))
            .all()
        ):
            listing.is_active = False
            listing.updated_at = now

        # The copy is gone; nobody else's request for it can be fulfilled.
        (
            db.query(ExchangeRequest)
            .filter(
                ExchangeRequest.physical_book_id == copy.id,
                ExchangeRequest.status == STATUS_PENDING,
                ExchangeRequest.id != exchange.id,
            )
            .update({"status": STATUS_REJECTED, "updated_at": now}, synchronize_session=False)
        )

    logger.info(
        f"Exchange {exchange.id} completed: {exchange.points_charged} points "
        f"{exchange.receiver_id} -> {exchange.giver_id}"
    )
    return exchange


def reject(db: Session, exchange_id: str, acting_user_id: str) -> ExchangeRequest:
    exchange = get_exchange(db, exchange_id)
    if exchange.giver_id != acting_user_id:
        raise NotAuthorizedError("Only the book owner can reject this request.")
    if exchange.status != STATUS_PENDING:
        raise InvalidStateError(f"Exchange is {exchange.status}, not pending.")

    with transaction(db):
        transition(db, exchange, STATUS_PENDING, STATUS_REJECTED)
    logger.info(f"Exchange {exchange.id} rejected by {acting_user_id}")
    return exchange
