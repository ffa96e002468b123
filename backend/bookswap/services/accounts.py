from __future__ import annotations

import logging
from datetime import datetime
from uuid import uuid4

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from bookswap.core.config import settings
from bookswap.core.database import transaction
from bookswap.core.errors import AuthenticationError, DuplicateEmailError, NotFoundError
from bookswap.models import BookHistoryEntry, ExchangeRequest, Listing, PhysicalBook, User
from bookswap.models.exchange_request import STATUS_COMPLETED, STATUS_DISPUTED
from bookswap.models.user import ROLE_ADMIN, ROLE_USER
from bookswap.services import ledger
from bookswap.utils.crypto import hash_password, verify_password


logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found.")
    return user


def find_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def register(db: Session, name: str, email: str, password: str) -> User:
    email = email.strip().lower()
    if find_by_email(db, email):
        raise DuplicateEmailError()

    now = datetime.utcnow()
    role = ROLE_ADMIN if email in settings.admin_email_list else ROLE_USER
    user = User(
        id=uuid4().hex,
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role=role,
        created_at=now,
        updated_at=now,
    )
    with transaction(db):
        db.add(user)
        db.flush()
        # Balance row exists from the start; no lazy initialization race.
        ledger.create_balance_row(db, user.id)
    logger.info(f"Registered user {user.id} ({role})")
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    user = find_by_email(db, email)
    if not user or not verify_password(user.password_hash, password):
        raise AuthenticationError("Invalid email or password.")
    with transaction(db):
        user.last_signed_in = datetime.utcnow()
    return user


def update_name(db: Session, user: User, name: str) -> User:
    with transaction(db):
        user.name = name.strip()
        user.updated_at = datetime.utcnow()
    return user


def user_stats(db: Session, user_id: str) -> dict[str, float | int]:
    total_listed = db.query(Listing).filter(Listing.owner_id == user_id).count()
    total_exchanged = (
        db.query(ExchangeRequest)
        .filter(
            or_(ExchangeRequest.giver_id == user_id, ExchangeRequest.receiver_id == user_id),
            ExchangeRequest.status.in_([STATUS_COMPLETED, STATUS_DISPUTED]),
        )
        .count()
    )
    # Ratings readers left on copies this user currently holds.
    average_rating = (
        db.query(func.avg(BookHistoryEntry.rating))
        .join(PhysicalBook, PhysicalBook.id == BookHistoryEntry.physical_book_id)
        .filter(PhysicalBook.owner_id == user_id, BookHistoryEntry.rating.isnot(None))
        .scalar()
    )
    return {
        "current_points": ledger.get_balance(db, user_id),
        "total_books_listed": total_listed,
        "total_books_exchanged": total_exchanged,
        "average_rating": round(float(average_rating or 0.0), 2),
    }


def user_names(db: Session, user_ids) -> dict[str, str]:
    ids = {uid for uid in user_ids if uid}
    if not ids:
        return {}
    return {uid: name for uid, name in db.query(User.id, User.name).filter(User.id.in_(ids)).all()}
