from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bookswap.core.auth import UserContext, get_current_user
from bookswap.core.database import get_db
from bookswap.core.schemas import (
    ChatCreate,
    ChatListResponse,
    ChatOut,
    MessageCreate,
    MessageListResponse,
    MessageOut,
)
from bookswap.models import Chat, ChatMessage
from bookswap.services import accounts, chats
from bookswap.services.moderation import display_content


router = APIRouter()


def _message_out(message: ChatMessage) -> MessageOut:
    return MessageOut(
        id=message.id,
        chat_id=message.chat_id,
        sender_id=message.sender_id,
        content=display_content(message.content, message.is_flagged),
        is_flagged=message.is_flagged,
        is_read=message.is_read,
        created_at=message.created_at,
    )


def _chat_out(db: Session, chat: Chat, user_id: str) -> ChatOut:
    other_id = chat.participant_high if chat.participant_low == user_id else chat.participant_low
    last = chats.last_message(db, chat.id)
    return ChatOut(
        id=chat.id,
        participant_ids=chat.participant_ids,
        other_participant_name=accounts.user_names(db, [other_id]).get(other_id),
        last_message=_message_out(last) if last else None,
        unread_count=chats.unread_count(db, chat.id, user_id),
        created_at=chat.created_at,
    )


@router.get("", response_model=ChatListResponse)
def list_chats(
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> ChatListResponse:
    rows = chats.list_chats(db, user.user_id)
    return ChatListResponse(total=len(rows), chats=[_chat_out(db, row, user.user_id) for row in rows])


@router.post("", response_model=ChatOut)
def start_chat(
    payload: ChatCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> ChatOut:
    chat = chats.get_or_create_chat(db, user.user_id, payload.participant_ids)
    return _chat_out(db, chat, user.user_id)


@router.get("/{chat_id}/messages", response_model=MessageListResponse)
def list_messages(
    chat_id: str,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> MessageListResponse:
    total, rows = chats.list_messages(db, chat_id, user.user_id, limit=limit, offset=offset)
    return MessageListResponse(total=total, messages=[_message_out(row) for row in rows])


@router.post("/{chat_id}/messages", response_model=MessageOut)
def send_message(
    chat_id: str,
    payload: MessageCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> MessageOut:
    message = chats.post_chat_message(db, chat_id, user.user_id, payload.message)
    return _message_out(message)


@router.put("/{chat_id}/read")
def mark_chat_read(
    chat_id: str,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> dict:
    return {"updated": chats.mark_read(db, chat_id, user.user_id)}
