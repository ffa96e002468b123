from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from bookswap.core.database import Base


DISPUTE_OPEN = "open"
DISPUTE_IN_REVIEW = "in_review"
DISPUTE_RESOLVED = "resolved"
DISPUTE_CLOSED = "closed"

ACTIVE_DISPUTE_STATUSES = (DISPUTE_OPEN, DISPUTE_IN_REVIEW)
TERMINAL_DISPUTE_STATUSES = (DISPUTE_RESOLVED, DISPUTE_CLOSED)


class Dispute(Base):
    __tablename__ = "disputes"
    # One active dispute per exchange.
    __table_args__ = (
        Index(
            "uq_disputes_active_exchange",
            "exchange_request_id",
            unique=True,
            sqlite_where=text("status IN ('open', 'in_review')"),
            postgresql_where=text("status IN ('open', 'in_review')"),
        ),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    exchange_request_id: Mapped[str] = mapped_column(
        String, ForeignKey("exchange_requests.id"), index=True, nullable=False
    )
    reporter_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), index=True, nullable=False)
    reason: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, default=DISPUTE_OPEN, nullable=False)
    resolution: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved_by: Mapped[str | None] = mapped_column(String, ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
