from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from bookswap.core.database import Base


STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_REJECTED = "rejected"
STATUS_COMPLETED = "completed"
STATUS_DISPUTED = "disputed"

EXCHANGE_STATUSES = (
    STATUS_PENDING,
    STATUS_ACCEPTED,
    STATUS_REJECTED,
    STATUS_COMPLETED,
    STATUS_DISPUTED,
)


class ExchangeRequest(Base):
    __tablename__ = "exchange_requests"
    # One pending request per (copy, receiver).
    __table_args__ = (
        Index(
            "uq_exchange_pending_receiver",
            "physical_book_id",
            "receiver_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    physical_book_id: Mapped[str] = mapped_column(
        String, ForeignKey("physical_books.id"), index=True, nullable=False
    )
    listing_id: Mapped[str | None] = mapped_column(String, ForeignKey("listings.id"), nullable=True)
    giver_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), index=True, nullable=False)
    receiver_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), index=True, nullable=False)
    points_charged: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String, index=True, default=STATUS_PENDING, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
