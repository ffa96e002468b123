from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bookswap.core.database import Base


THREAD_TYPES = ("discussion", "chapter_debate", "interpretation", "guidance")


class Forum(Base):
    __tablename__ = "forums"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    book_id: Mapped[str] = mapped_column(String, ForeignKey("books.id"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String, ForeignKey("users.id"), nullable=True)
    is_flagged: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class ForumThread(Base):
    __tablename__ = "forum_threads"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    forum_id: Mapped[str] = mapped_column(String, ForeignKey("forums.id"), index=True, nullable=False)
    author_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    thread_type: Mapped[str] = mapped_column(String, default="discussion", nullable=False)
    chapter: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # Set by the content filter at creation, never cleared automatically.
    is_flagged: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class ForumPost(Base):
    __tablename__ = "forum_posts"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    forum_id: Mapped[str] = mapped_column(String, ForeignKey("forums.id"), index=True, nullable=False)
    thread_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("forum_threads.id"), index=True, nullable=True
    )
    author_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), index=True, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    chapter: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_flagged: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
