from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from bookswap.core.database import Base


class Listing(Base):
    __tablename__ = "listings"
    # At most one active listing per physical copy.
    __table_args__ = (
        Index(
            "uq_listings_active_copy",
            "physical_book_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    physical_book_id: Mapped[str] = mapped_column(
        String, ForeignKey("physical_books.id"), index=True, nullable=False
    )
    owner_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), index=True, nullable=False)
    location: Mapped[str] = mapped_column(String, nullable=False)
    images: Mapped[list] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
