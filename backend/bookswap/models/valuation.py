from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from bookswap.core.database import Base


class BookValuation(Base):
    __tablename__ = "book_valuations"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    physical_book_id: Mapped[str] = mapped_column(
        String, ForeignKey("physical_books.id"), index=True, nullable=False
    )
    condition: Mapped[str] = mapped_column(String, nullable=False)
    base_points: Mapped[int] = mapped_column(Integer, nullable=False)
    demand_bonus: Mapped[int] = mapped_column(Integer, default=0)
    final_points: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
