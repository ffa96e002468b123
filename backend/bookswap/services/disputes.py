from __future__ import annotations

import logging
from datetime import datetime
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookswap.core.database import transaction
from bookswap.core.errors import (
    DuplicateDisputeError,
    InvalidStateError,
    NotAuthorizedError,
    NotFoundError,
)
from bookswap.models import Dispute
from bookswap.models.dispute import (
    ACTIVE_DISPUTE_STATUSES,
    DISPUTE_CLOSED,
    DISPUTE_IN_REVIEW,
    DISPUTE_OPEN,
    DISPUTE_RESOLVED,
)
from bookswap.models.exchange_request import STATUS_COMPLETED, STATUS_DISPUTED
from bookswap.services import exchanges


logger = logging.getLogger(__name__)


# Operator transitions: target -> allowed source states. resolved/closed are terminal.
_ALLOWED_SOURCES = {
    DISPUTE_IN_REVIEW: (DISPUTE_OPEN,),
    DISPUTE_RESOLVED: (DISPUTE_OPEN, DISPUTE_IN_REVIEW),
    DISPUTE_CLOSED: (DISPUTE_OPEN, DISPUTE_IN_REVIEW),
}


def get_dispute(db: Session, dispute_id: str) -> Dispute:
    dispute = db.get(Dispute, dispute_id)
    if not dispute:
        raise NotFoundError("Dispute not found.")
    return dispute


def get_visible(db: Session, dispute_id: str, user_id: str, is_admin: bool) -> Dispute:
    dispute = get_dispute(db, dispute_id)
    if is_admin:
        return dispute
    exchange = exchanges.get_exchange(db, dispute.exchange_request_id)
    if user_id not in (exchange.giver_id, exchange.receiver_id):
        raise NotAuthorizedError("You are not part of this exchange.")
    return dispute


def active_dispute(db: Session, exchange_id: str) -> Dispute | None:
    return (
        db.query(Dispute)
        .filter(
            Dispute.exchange_request_id == exchange_id,
            Dispute.status.in_(ACTIVE_DISPUTE_STATUSES),
        )
        .first()
    )


def file_dispute(
    db: Session,
    exchange_id: str,
    reporter_id: str,
    reason: str,
    description: str | None = None,
) -> Dispute:
    exchange = exchanges.get_for_party(db, exchange_id, reporter_id)
    if active_dispute(db, exchange.id):
        raise DuplicateDisputeError()
    # A disputed exchange can be reported again once earlier disputes are settled.
    if exchange.status not in (STATUS_COMPLETED, STATUS_DISPUTED):
        raise InvalidStateError("Only completed exchanges can be disputed.")

    now = datetime.utcnow()
    dispute = Dispute(
        id=uuid4().hex,
        exchange_request_id=exchange.id,
        reporter_id=reporter_id,
        reason=reason.strip(),
        description=description,
        status=DISPUTE_OPEN,
        created_at=now,
        updated_at=now,
    )
    try:
        with transaction(db):
            if exchange.status == STATUS_COMPLETED:
                exchanges.transition(db, exchange, STATUS_COMPLETED, STATUS_DISPUTED)
            db.add(dispute)
    except IntegrityError as exc:
        raise DuplicateDisputeError() from exc
    logger.info(f"Dispute {dispute.id} filed on exchange {exchange.id} by {reporter_id}")
    return dispute


def _move(db: Session, dispute_id: str, operator_id: str, target: str, resolution: str | None) -> Dispute:
    dispute = get_dispute(db, dispute_id)
    sources = _ALLOWED_SOURCES[target]
    if dispute.status not in sources:
        raise InvalidStateError(f"Dispute is {dispute.status}; cannot move to {target}.")

    values = {"status": target, "updated_at": datetime.utcnow()}
    if target in (DISPUTE_RESOLVED, DISPUTE_CLOSED):
        values["resolved_by"] = operator_id
        if resolution is not None:
            values["resolution"] = resolution
    with transaction(db):
        updated = (
            db.query(Dispute)
            .filter(Dispute.id == dispute.id, Dispute.status.in_(sources))
            .update(values, synchronize_session=False)
        )
        if not updated:
            raise InvalidStateError("Dispute was updated by someone else.")
    db.refresh(dispute)
    logger.info(f"Dispute {dispute.id} -> {target} by operator {operator_id}")
    return dispute


def start_review(db: Session, dispute_id: str, operator_id: str) -> Dispute:
    return _move(db, dispute_id, operator_id, DISPUTE_IN_REVIEW, None)


def resolve(db: Session, dispute_id: str, operator_id: str, resolution: str | None = None) -> Dispute:
    return _move(db, dispute_id, operator_id, DISPUTE_RESOLVED, resolution)


def close(db: Session, dispute_id: str, operator_id: str, resolution: str | None = None) -> Dispute:
    return _move(db, dispute_id, operator_id, DISPUTE_CLOSED, resolution)
