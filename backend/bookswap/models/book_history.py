from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bookswap.core.database import Base


class BookHistoryEntry(Base):
    __tablename__ = "book_history"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    physical_book_id: Mapped[str] = mapped_column(
        String, ForeignKey("physical_books.id"), index=True, nullable=False
    )
    reader_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), index=True, nullable=False)
    reader_name: Mapped[str] = mapped_column(String, nullable=False)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    reading_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    reading_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    tips: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 1-5 stars
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
