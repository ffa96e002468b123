from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from bookswap.core.database import Base


class Chat(Base):
    __tablename__ = "chats"
    # Participants are stored sorted so the unordered pair is unique.
    __table_args__ = (
        UniqueConstraint("participant_low", "participant_high", name="uq_chat_participants"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    participant_low: Mapped[str] = mapped_column(String, ForeignKey("users.id"), index=True, nullable=False)
    participant_high: Mapped[str] = mapped_column(String, ForeignKey("users.id"), index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    last_message_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    @property
    def participant_ids(self) -> list[str]:
        return [self.participant_low, self.participant_high]


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    chat_id: Mapped[str] = mapped_column(String, ForeignKey("chats.id"), index=True, nullable=False)
    sender_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), index=True, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_flagged: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
