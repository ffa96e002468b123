from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bookswap.core.auth import UserContext, get_current_user
from bookswap.core.database import get_db
from bookswap.core.schemas import (
    ForumCreate,
    ForumListResponse,
    ForumOut,
    PostCreate,
    PostListResponse,
    PostOut,
    ThreadCreate,
    ThreadListResponse,
    ThreadOut,
)
from bookswap.models import Forum, ForumPost, ForumThread
from bookswap.services import accounts, forums
from bookswap.services.moderation import display_content


router = APIRouter()

ANONYMOUS_NAME = "Anonymous"


# 匿名内容不暴露作者，被标记内容以占位文本展示
def _author(row: ForumThread | ForumPost, names: dict[str, str]) -> tuple[str | None, str]:
    if row.is_anonymous:
        return None, ANONYMOUS_NAME
    return row.author_id, names.get(row.author_id, "Unknown reader")


def _thread_out(row: ForumThread, names: dict[str, str]) -> ThreadOut:
    author_id, author_name = _author(row, names)
    return ThreadOut(
        id=row.id,
        forum_id=row.forum_id,
        author_id=author_id,
        author_name=author_name,
        title=display_content(row.title, row.is_flagged),
        content=display_content(row.content, row.is_flagged),
        thread_type=row.thread_type,
        chapter=row.chapter,
        is_anonymous=row.is_anonymous,
        is_flagged=row.is_flagged,
        created_at=row.created_at,
    )


def _forum_out(row: Forum) -> ForumOut:
    out = ForumOut.model_validate(row)
    if row.is_flagged:
        out.title = display_content(row.title, True)
        out.description = None
    return out


def _post_out(row: ForumPost, names: dict[str, str]) -> PostOut:
    author_id, author_name = _author(row, names)
    return PostOut(
        id=row.id,
        forum_id=row.forum_id,
        thread_id=row.thread_id,
        author_id=author_id,
        author_name=author_name,
        content=display_content(row.content, row.is_flagged),
        chapter=row.chapter,
        is_anonymous=row.is_anonymous,
        is_flagged=row.is_flagged,
        created_at=row.created_at,
    )


def _posts_response(db: Session, rows: list[ForumPost]) -> PostListResponse:
    names = accounts.user_names(db, [row.author_id for row in rows])
    return PostListResponse(posts=[_post_out(row, names) for row in rows])


@router.get("/books/{book_id}/forums", response_model=ForumListResponse)
def list_book_forums(book_id: str, db: Session = Depends(get_db)) -> ForumListResponse:
    rows = forums.list_forums(db, book_id)
    return ForumListResponse(forums=[_forum_out(row) for row in rows])


@router.post("/books/{book_id}/forums", response_model=ForumOut)
def create_book_forum(
    book_id: str,
    payload: ForumCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> ForumOut:
    forum = forums.create_forum(db, book_id, payload.title, payload.description, user.user_id)
    return _forum_out(forum)


@router.get("/forums/{forum_id}/posts", response_model=PostListResponse)
def list_forum_posts(forum_id: str, db: Session = Depends(get_db)) -> PostListResponse:
    return _posts_response(db, forums.list_posts(db, forum_id=forum_id))


@router.post("/forums/{forum_id}/posts", response_model=PostOut)
def create_forum_post(
    forum_id: str,
    payload: PostCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> PostOut:
    post = forums.post_thread_message(
        db,
        user.user_id,
        payload.content,
        forum_id=forum_id,
        is_anonymous=payload.is_anonymous,
        chapter=payload.chapter,
    )
    return _post_out(post, accounts.user_names(db, [post.author_id]))


@router.get("/forums/{forum_id}/threads", response_model=ThreadListResponse)
def list_forum_threads(forum_id: str, db: Session = Depends(get_db)) -> ThreadListResponse:
    rows = forums.list_threads(db, forum_id)
    names = accounts.user_names(db, [row.author_id for row in rows])
    return ThreadListResponse(threads=[_thread_out(row, names) for row in rows])


@router.post("/forums/{forum_id}/threads", response_model=ThreadOut)
def create_forum_thread(
    forum_id: str,
    payload: ThreadCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> ThreadOut:
    thread = forums.create_thread(
        db,
        forum_id,
        user.user_id,
        payload.title,
        payload.content,
        thread_type=payload.thread_type,
        chapter=payload.chapter,
        is_anonymous=payload.is_anonymous,
    )
    return _thread_out(thread, accounts.user_names(db, [thread.author_id]))


@router.get("/threads/{thread_id}/posts", response_model=PostListResponse)
def list_thread_posts(thread_id: str, db: Session = Depends(get_db)) -> PostListResponse:
    return _posts_response(db, forums.list_posts(db, thread_id=thread_id))


@router.post("/threads/{thread_id}/posts", response_model=PostOut)
def reply_to_thread(
    thread_id: str,
    payload: PostCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> PostOut:
    post = forums.post_thread_message(
        db,
        user.user_id,
        payload.content,
        thread_id=thread_id,
        is_anonymous=payload.is_anonymous,
        chapter=payload.chapter,
    )
    return _post_out(post, accounts.user_names(db, [post.author_id]))
