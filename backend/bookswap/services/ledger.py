"""Points ledger: cached per-user balance plus an append-only transaction log.

Nothing in here commits. Callers wrap every write that belongs to one logical
event (an exchange, a purchase, a reward) in a single unit of work so the
balance and its transactions become visible together or not at all.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import uuid4

from sqlalchemy import func
from sqlalchemy.orm import Session

from bookswap.core.errors import InsufficientFundsError, ValidationError
from bookswap.models import PointsBalance, PointTransaction
from bookswap.models.points import CREDIT_TYPES, TRANSACTION_TYPES, TX_EARNED, TX_SPENT


logger = logging.getLogger(__name__)


def create_balance_row(db: Session, user_id: str) -> PointsBalance:
    row = PointsBalance(
        user_id=user_id,
        balance=0,
        total_earned=0,
        total_spent=0,
        updated_at=datetime.utcnow(),
    )
    db.add(row)
    return row


def get_balance(db: Session, user_id: str) -> int:
    balance = (
        db.query(PointsBalance.balance).filter(PointsBalance.user_id == user_id).scalar()
    )
    return int(balance or 0)


def get_balance_summary(db: Session, user_id: str) -> dict[str, int]:
    row = (
        db.query(PointsBalance.balance, PointsBalance.total_earned, PointsBalance.total_spent)
        .filter(PointsBalance.user_id == user_id)
        .first()
    )
    if not row:
        return {"balance": 0, "total_earned": 0, "total_spent": 0}
    balance, total_earned, total_spent = row
    return {
        "balance": int(balance or 0),
        "total_earned": int(total_earned or 0),
        "total_spent": int(total_spent or 0),
    }


def _debit(db: Session, user_id: str, amount: int, now: datetime) -> None:
    updated = (
        db.query(PointsBalance)
        .filter(PointsBalance.user_id == user_id, PointsBalance.balance >= amount)
        .update(
            {
                PointsBalance.balance: PointsBalance.balance - amount,
                PointsBalance.total_spent: PointsBalance.total_spent + amount,
                PointsBalance.updated_at: now,
            },
            synchronize_session=False,
        )
    )
    if not updated:
        raise InsufficientFundsError(
            f"Insufficient points: {amount} required, {get_balance(db, user_id)} available."
        )


def _credit(db: Session, user_id: str, amount: int, now: datetime) -> None:
    updated = db.query(PointsBalance).filter(PointsBalance.user_id == user_id).update(
        {
            PointsBalance.balance: PointsBalance.balance + amount,
            PointsBalance.total_earned: PointsBalance.total_earned + amount,
            PointsBalance.updated_at: now,
        },
        synchronize_session=False,
    )
    if updated:
        return
    # Users created before balances existed get their row on first credit.
    db.add(
        PointsBalance(
            user_id=user_id,
            balance=amount,
            total_earned=amount,
            total_spent=0,
            updated_at=now,
        )
    )


def apply_transaction(
    db: Session,
    user_id: str,
    amount: int,
    tx_type: str,
    description: str | None = None,
    exchange_request_id: str | None = None,
) -> PointTransaction:
    if tx_type not in TRANSACTION_TYPES:
        raise ValidationError(f"Unknown transaction type: {tx_type}.")
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise ValidationError("Transaction amount must be a positive integer.")

    now = datetime.utcnow()
    db.flush()
    # The balance update runs first so an overdraft fails before the log is touched.
    if tx_type == TX_SPENT:
        _debit(db, user_id, amount, now)
    else:
        _credit(db, user_id, amount, now)

    row = PointTransaction(
        id=uuid4().hex,
        user_id=user_id,
        amount=amount,
        type=tx_type,
        description=description,
        exchange_request_id=exchange_request_id,
        created_at=now,
    )
    db.add(row)
    db.flush()
    logger.info(f"Ledger {tx_type} {amount} for user {user_id} ({description or '-'})")
    return row


def reward(db: Session, user_id: str, amount: int, description: str) -> PointTransaction | None:
    if amount <= 0:
        return None
    return apply_transaction(db, user_id, amount, TX_EARNED, description)


def list_transactions(
    db: Session, user_id: str, limit: int = 50, offset: int = 0
) -> tuple[int, list[PointTransaction]]:
    query = db.query(PointTransaction).filter(PointTransaction.user_id == user_id)
    total = query.count()
    rows = (
        query.order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return total, rows


def computed_balance(db: Session, user_id: str) -> int:
    credits = (
        db.query(func.coalesce(func.sum(PointTransaction.amount), 0))
        .filter(PointTransaction.user_id == user_id, PointTransaction.type.in_(CREDIT_TYPES))
        .scalar()
    )
    debits = (
        db.query(func.coalesce(func.sum(PointTransaction.amount), 0))
        .filter(PointTransaction.user_id == user_id, PointTransaction.type == TX_SPENT)
        .scalar()
    )
    return int(credits or 0) - int(debits or 0)


def audit_balance(db: Session, user_id: str) -> dict[str, int | str | bool]:
    cached = get_balance(db, user_id)
    expected = computed_balance(db, user_id)
    return {
        "user_id": user_id,
        "balance": cached,
        "expected": expected,
        "consistent": cached == expected,
    }
