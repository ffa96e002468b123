from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bookswap.core.auth import UserContext, get_current_user
from bookswap.core.database import get_db
from bookswap.core.schemas import BookCreate, BookListResponse, BookOut
from bookswap.services import catalog


router = APIRouter()


@router.post("", response_model=BookOut)
def create_book(
    payload: BookCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> BookOut:
    book = catalog.create_book_metadata(
        db,
        payload.title,
        payload.author,
        isbn=payload.isbn,
        description=payload.description,
        genre=payload.genre,
        created_by=user.user_id,
    )
    return BookOut.model_validate(book)


@router.get("", response_model=BookListResponse)
def list_books(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> BookListResponse:
    rows = catalog.list_books(db, limit=limit, offset=offset)
    return BookListResponse(books=[BookOut.model_validate(row) for row in rows])


@router.get("/search", response_model=BookListResponse)
def search_books(
    query: str | None = Query(None, max_length=200),
    isbn: str | None = Query(None, max_length=20),
    owner_id: str | None = Query(None, alias="ownerId"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
) -> BookListResponse:
    rows = catalog.search(db, query=query, owner_id=owner_id, isbn=isbn, limit=limit)
    return BookListResponse(books=[BookOut.model_validate(row) for row in rows])


@router.get("/{book_id}", response_model=BookOut)
def get_book(book_id: str, db: Session = Depends(get_db)) -> BookOut:
    return BookOut.model_validate(catalog.get_book(db, book_id))
