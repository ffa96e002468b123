"""Simulated card gateway for buying points.

A card is approved when its number passes the Luhn check and its MM/YY
expiry is not in the past. Only the last four digits are ever stored.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from uuid import uuid4

from sqlalchemy.orm import Session

from bookswap.core.config import settings
from bookswap.core.database import transaction
from bookswap.core.errors import PaymentDeclinedError, ValidationError
from bookswap.models import PaymentTransaction
from bookswap.models.payment import PAYMENT_COMPLETED, PAYMENT_FAILED
from bookswap.models.points import TX_PURCHASED
from bookswap.services import ledger
from bookswap.utils.crypto import mask_card_number


logger = logging.getLogger(__name__)


def luhn_valid(number: str) -> bool:
    digits = [int(ch) for ch in number if ch.isdigit()]
    if len(digits) < 12 or len(digits) > 19:
        return False
    total = 0
    for index, digit in enumerate(reversed(digits)):
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def parse_expiry(expiry: str) -> tuple[int, int] | None:
    """Parse ``MM/YY`` (or ``MM/YYYY``) into ``(year, month)``."""
    month_part, sep, year_part = expiry.strip().partition("/")
    if not sep or not month_part.isdigit() or not year_part.isdigit():
        return None
    month = int(month_part)
    if not 1 <= month <= 12:
        return None
    year = int(year_part)
    if len(year_part) == 2:
        year += 2000
    elif len(year_part) != 4:
        return None
    return year, month


def card_expired(expiry: str, today: date | None = None) -> bool:
    parsed = parse_expiry(expiry)
    if not parsed:
        return True
    today = today or datetime.utcnow().date()
    # Cards are valid through the last day of the expiry month.
    return parsed < (today.year, today.month)


def decline_reason(number: str, expiry: str, cvc: str) -> str | None:
    if not luhn_valid(number):
        return "invalid card number"
    if card_expired(expiry):
        return "card expired"
    if not cvc.isdigit():
        return "invalid security code"
    return None


def price_for(points: int) -> int:
    return points * settings.point_price


def buy_points(
    db: Session, user_id: str, points: int, number: str, expiry: str, cvc: str
) -> tuple[PaymentTransaction, int]:
    if points < 1 or points > settings.max_points_per_purchase:
        raise ValidationError(
            f"Points must be between 1 and {settings.max_points_per_purchase}."
        )

    now = datetime.utcnow()
    payment = PaymentTransaction(
        id=uuid4().hex,
        user_id=user_id,
        amount=price_for(points),
        points_purchased=points,
        card_last4=mask_card_number(number),
        created_at=now,
        updated_at=now,
    )

    reason = decline_reason(number, expiry, cvc)
    if reason:
        payment.status = PAYMENT_FAILED
        payment.failure_reason = reason
        with transaction(db):
            db.add(payment)
        logger.info(f"Payment {payment.id} declined for user {user_id}: {reason}")
        raise PaymentDeclinedError(f"Payment declined: {reason}.")

    payment.status = PAYMENT_COMPLETED
    with transaction(db):
        db.add(payment)
        db.flush()
        ledger.apply_transaction(
            db, user_id, points, TX_PURCHASED, f"Purchased {points} points"
        )
    logger.info(f"Payment {payment.id} completed: {points} points for {payment.amount}")
    return payment, ledger.get_balance(db, user_id)


def list_payments(db: Session, user_id: str, limit: int = 20) -> list[PaymentTransaction]:
    return (
        db.query(PaymentTransaction)
        .filter(PaymentTransaction.user_id == user_id)
        .order_by(PaymentTransaction.created_at.desc(), PaymentTransaction.id.desc())
        .limit(limit)
        .all()
    )
