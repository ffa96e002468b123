from __future__ import annotations

import logging
from datetime import date, datetime
from uuid import uuid4

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookswap.core.book_conditions import (
    MAX_BOOK_POINTS,
    MAX_DEMAND_BONUS,
    base_points,
    normalize_condition,
)
from bookswap.core.config import settings
from bookswap.core.database import transaction
from bookswap.core.errors import (
    DuplicateIsbnError,
    ListingConflictError,
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
)
from bookswap.models import (
    Book,
    BookHistoryEntry,
    BookValuation,
    Listing,
    PhysicalBook,
    User,
    WishlistItem,
)
from bookswap.services import ledger
from bookswap.utils.isbn import normalize_isbn


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------- lookups


def get_book(db: Session, book_id: str) -> Book:
    book = db.get(Book, book_id)
    if not book:
        raise NotFoundError("Book not found.")
    return book


def get_physical_book(db: Session, physical_book_id: str) -> PhysicalBook:
    copy = db.get(PhysicalBook, physical_book_id)
    if not copy:
        raise NotFoundError("Physical book not found.")
    return copy


def get_active_listing(db: Session, physical_book_id: str) -> Listing | None:
    return (
        db.query(Listing)
        .filter(Listing.physical_book_id == physical_book_id, Listing.is_active.is_(True))
        .first()
    )


def latest_valuation(db: Session, physical_book_id: str) -> BookValuation | None:
    return (
        db.query(BookValuation)
        .filter(BookValuation.physical_book_id == physical_book_id)
        .order_by(BookValuation.created_at.desc(), BookValuation.id.desc())
        .first()
    )


def list_valuations(db: Session, physical_book_id: str) -> list[BookValuation]:
    return (
        db.query(BookValuation)
        .filter(BookValuation.physical_book_id == physical_book_id)
        .order_by(BookValuation.created_at.desc(), BookValuation.id.desc())
        .all()
    )


# ---------------------------------------------------------------- valuation


def demand_bonus(db: Session, book_id: str) -> int:
    watchers = db.query(WishlistItem).filter(WishlistItem.book_id == book_id).count()
    return min(MAX_DEMAND_BONUS, watchers)


def estimate_points(db: Session, copy: PhysicalBook) -> int:
    base = base_points(copy.condition)
    return min(MAX_BOOK_POINTS, base + demand_bonus(db, copy.book_id))


def points_for(db: Session, copy: PhysicalBook) -> int:
    valuation = latest_valuation(db, copy.id)
    if valuation:
        return valuation.final_points
    return estimate_points(db, copy)


def record_valuation(db: Session, copy: PhysicalBook) -> BookValuation:
    base = base_points(copy.condition)
    bonus = demand_bonus(db, copy.book_id)
    valuation = BookValuation(
        id=uuid4().hex,
        physical_book_id=copy.id,
        condition=copy.condition,
        base_points=base,
        demand_bonus=bonus,
        final_points=max(1, min(MAX_BOOK_POINTS, base + bonus)),
        created_at=datetime.utcnow(),
    )
    db.add(valuation)
    return valuation


# ---------------------------------------------------------------- books


def find_by_isbn(db: Session, isbn: str | None) -> Book | None:
    isbn = normalize_isbn(isbn)
    if not isbn:
        return None
    return db.query(Book).filter(Book.isbn == isbn).first()


def create_book_metadata(
    db: Session,
    title: str,
    author: str,
    isbn: str | None = None,
    description: str | None = None,
    genre: str | None = None,
    created_by: str | None = None,
) -> Book:
    isbn = normalize_isbn(isbn)
    if isbn:
        existing = find_by_isbn(db, isbn)
        if existing:
            raise DuplicateIsbnError(existing.id)

    book = Book(
        id=uuid4().hex,
        title=title.strip(),
        author=author.strip(),
        isbn=isbn,
        description=description,
        genre=genre,
        created_by=created_by,
        created_at=datetime.utcnow(),
    )
    try:
        with transaction(db):
            db.add(book)
    except IntegrityError:
        # Lost an insert race on the same ISBN.
        existing = find_by_isbn(db, isbn) if isbn else None
        if existing:
            raise DuplicateIsbnError(existing.id)
        raise
    return book


def list_books(db: Session, limit: int = 20, offset: int = 0) -> list[Book]:
    return (
        db.query(Book)
        .order_by(Book.created_at.desc(), Book.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def search(
    db: Session,
    query: str | None = None,
    owner_id: str | None = None,
    isbn: str | None = None,
    limit: int = 50,
) -> list[Book]:
    q = db.query(Book)
    if query and query.strip():
        pattern = f"%{query.strip().lower()}%"
        q = q.filter(or_(func.lower(Book.title).like(pattern), func.lower(Book.author).like(pattern)))
    if isbn:
        q = q.filter(Book.isbn == normalize_isbn(isbn))
    if owner_id:
        owned = db.query(PhysicalBook.book_id).filter(PhysicalBook.owner_id == owner_id)
        q = q.filter(Book.id.in_(owned))
    return q.order_by(Book.title.asc(), Book.id.asc()).limit(limit).all()


# ---------------------------------------------------------------- physical copies


def register_physical_copy(
    db: Session, book_id: str, owner_id: str, condition: str, location: str
) -> PhysicalBook:
    get_book(db, book_id)
    normalized = normalize_condition(condition)
    if not normalized:
        raise ValidationError(f"Unknown condition: {condition}.")
    now = datetime.utcnow()
    copy = PhysicalBook(
        id=uuid4().hex,
        book_id=book_id,
        owner_id=owner_id,
        condition=normalized,
        location=location.strip(),
        is_available=True,
        created_at=now,
        updated_at=now,
    )
    with transaction(db):
        db.add(copy)
    return copy


def update_physical_copy(
    db: Session,
    physical_book_id: str,
    user_id: str,
    condition: str | None = None,
    location: str | None = None,
    is_available: bool | None = None,
) -> PhysicalBook:
    copy = get_physical_book(db, physical_book_id)
    if copy.owner_id != user_id:
        raise NotAuthorizedError("Only the owner can edit this book.")

    now = datetime.utcnow()
    with transaction(db):
        if condition is not None:
            normalized = normalize_condition(condition)
            if not normalized:
                raise ValidationError(f"Unknown condition: {condition}.")
            copy.condition = normalized
        if location is not None:
            copy.location = location.strip()
            listing = get_active_listing(db, copy.id)
            if listing:
                listing.location = copy.location
                listing.updated_at = now
        if is_available is not None:
            copy.is_available = is_available
        copy.updated_at = now
    return copy


def list_copies_for_owner(db: Session, owner_id: str) -> list[PhysicalBook]:
    return (
        db.query(PhysicalBook)
        .filter(PhysicalBook.owner_id == owner_id)
        .order_by(PhysicalBook.created_at.desc())
        .all()
    )


# ---------------------------------------------------------------- listings


def create_listing(
    db: Session,
    physical_book_id: str,
    user_id: str,
    location: str,
    images: list[dict] | None = None,
) -> Listing:
    copy = get_physical_book(db, physical_book_id)
    if copy.owner_id != user_id:
        raise NotAuthorizedError("Only the owner can list this book.")
    if get_active_listing(db, copy.id):
        raise ListingConflictError()

    now = datetime.utcnow()
    listing = Listing(
        id=uuid4().hex,
        physical_book_id=copy.id,
        owner_id=user_id,
        location=location.strip(),
        images=list(images or []),
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    try:
        with transaction(db):
            db.add(listing)
            copy.is_available = True
            copy.updated_at = now
            record_valuation(db, copy)
            db.flush()
            ledger.reward(db, user_id, settings.reward_listing_points, "Listed a book")
    except IntegrityError as exc:
        # Partial unique index caught a concurrent listing of the same copy.
        raise ListingConflictError() from exc
    logger.info(f"Listing {listing.id} created for copy {copy.id}")
    return listing


def remove_listing(db: Session, listing_id: str, user_id: str) -> Listing:
    listing = db.get(Listing, listing_id)
    if not listing:
        raise NotFoundError("Listing not found.")
    if listing.owner_id != user_id:
        raise NotAuthorizedError("Only the owner can remove this listing.")
    with transaction(db):
        listing.is_active = False
        listing.updated_at = datetime.utcnow()
    return listing


def list_active_listings(
    db: Session, limit: int = 20, offset: int = 0, query: str | None = None
) -> list[Listing]:
    q = db.query(Listing).filter(Listing.is_active.is_(True))
    if query and query.strip():
        pattern = f"%{query.strip().lower()}%"
        q = (
            q.join(PhysicalBook, PhysicalBook.id == Listing.physical_book_id)
            .join(Book, Book.id == PhysicalBook.book_id)
            .filter(or_(func.lower(Book.title).like(pattern), func.lower(Book.author).like(pattern)))
        )
    return (
        q.order_by(Listing.created_at.desc(), Listing.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


# ---------------------------------------------------------------- reading history


def add_history_entry(
    db: Session,
    physical_book_id: str,
    reader: User,
    city: str | None = None,
    reading_start: date | None = None,
    reading_end: date | None = None,
    notes: str | None = None,
    tips: str | None = None,
    rating: int | None = None,
) -> BookHistoryEntry:
    get_physical_book(db, physical_book_id)
    if reading_start and reading_end and reading_end < reading_start:
        raise ValidationError("Reading end must not be before reading start.")
    if rating is not None and not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5.")

    entry = BookHistoryEntry(
        id=uuid4().hex,
        physical_book_id=physical_book_id,
        reader_id=reader.id,
        reader_name=reader.name,
        city=city,
        reading_start=reading_start,
        reading_end=reading_end,
        notes=notes,
        tips=tips,
        rating=rating,
        created_at=datetime.utcnow(),
    )
    with transaction(db):
        db.add(entry)
        db.flush()
        ledger.reward(db, reader.id, settings.reward_history_points, "Added book history entry")
    return entry


def list_history(db: Session, physical_book_id: str) -> list[BookHistoryEntry]:
    get_physical_book(db, physical_book_id)
    return (
        db.query(BookHistoryEntry)
        .filter(BookHistoryEntry.physical_book_id == physical_book_id)
        .order_by(BookHistoryEntry.created_at.asc(), BookHistoryEntry.id.asc())
        .all()
    )
