from __future__ import annotations

import logging
from datetime import datetime
from uuid import uuid4

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookswap.core.database import transaction
from bookswap.core.errors import NotAuthorizedError, NotFoundError, ValidationError
from bookswap.models import Chat, ChatMessage, User
from bookswap.services import moderation


logger = logging.getLogger(__name__)


def _pair(first: str, second: str) -> tuple[str, str]:
    return (first, second) if first <= second else (second, first)


def find_chat(db: Session, first: str, second: str) -> Chat | None:
    low, high = _pair(first, second)
    return (
        db.query(Chat)
        .filter(Chat.participant_low == low, Chat.participant_high == high)
        .first()
    )


def get_or_create_chat(db: Session, requester_id: str, participant_ids: list[str]) -> Chat:
    ids = list(dict.fromkeys(participant_ids))
    if len(ids) != 2:
        raise ValidationError("A chat needs exactly two different participants.")
    if requester_id not in ids:
        raise NotAuthorizedError("You can only start chats you take part in.")
    other = ids[1] if ids[0] == requester_id else ids[0]
    if not db.get(User, other):
        raise NotFoundError("User not found.")

    existing = find_chat(db, requester_id, other)
    if existing:
        return existing

    low, high = _pair(requester_id, other)
    chat = Chat(
        id=uuid4().hex,
        participant_low=low,
        participant_high=high,
        created_at=datetime.utcnow(),
    )
    try:
        with transaction(db):
            db.add(chat)
    except IntegrityError:
        # Lost the race against a concurrent request for the same pair.
        winner = find_chat(db, low, high)
        if not winner:
            raise
        return winner
    logger.info(f"Chat {chat.id} created between {low} and {high}")
    return chat


def get_chat_for(db: Session, chat_id: str, user_id: str) -> Chat:
    chat = db.get(Chat, chat_id)
    if not chat:
        raise NotFoundError("Chat not found.")
    if user_id not in chat.participant_ids:
        raise NotAuthorizedError("You are not a participant of this chat.")
    return chat


def list_chats(db: Session, user_id: str) -> list[Chat]:
    return (
        db.query(Chat)
        .filter(or_(Chat.participant_low == user_id, Chat.participant_high == user_id))
        .order_by(func.coalesce(Chat.last_message_at, Chat.created_at).desc(), Chat.id.desc())
        .all()
    )


def last_message(db: Session, chat_id: str) -> ChatMessage | None:
    return (
        db.query(ChatMessage)
        .filter(ChatMessage.chat_id == chat_id)
        .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        .first()
    )


def unread_count(db: Session, chat_id: str, user_id: str) -> int:
    return (
        db.query(ChatMessage)
        .filter(
            ChatMessage.chat_id == chat_id,
            ChatMessage.sender_id != user_id,
            ChatMessage.is_read.is_(False),
        )
        .count()
    )


def list_messages(
    db: Session, chat_id: str, user_id: str, limit: int = 50, offset: int = 0
) -> tuple[int, list[ChatMessage]]:
    get_chat_for(db, chat_id, user_id)
    query = db.query(ChatMessage).filter(ChatMessage.chat_id == chat_id)
    total = query.count()
    rows = (
        query.order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return total, rows


def post_chat_message(db: Session, chat_id: str, sender_id: str, content: str) -> ChatMessage:
    chat = get_chat_for(db, chat_id, sender_id)
    verdict = moderation.screen(content)
    now = datetime.utcnow()
    message = ChatMessage(
        id=uuid4().hex,
        chat_id=chat.id,
        sender_id=sender_id,
        content=content,
        is_flagged=verdict.is_flagged,
        is_read=False,
        created_at=now,
    )
    with transaction(db):
        db.add(message)
        chat.last_message_at = now
    return message


def mark_read(db: Session, chat_id: str, user_id: str) -> int:
    get_chat_for(db, chat_id, user_id)
    with transaction(db):
        updated = (
            db.query(ChatMessage)
            .filter(
                ChatMessage.chat_id == chat_id,
                ChatMessage.sender_id != user_id,
                ChatMessage.is_read.is_(False),
            )
            .update({"is_read": True}, synchronize_session=False)
        )
    return updated
