from __future__ import annotations

import logging
from datetime import datetime
from uuid import uuid4

from sqlalchemy.orm import Session

from bookswap.core.config import settings
from bookswap.core.database import transaction
from bookswap.core.errors import NotFoundError, ValidationError
from bookswap.models import Forum, ForumPost, ForumThread
from bookswap.models.forum import THREAD_TYPES
from bookswap.services import catalog, ledger, moderation


logger = logging.getLogger(__name__)


def get_forum(db: Session, forum_id: str) -> Forum:
    forum = db.get(Forum, forum_id)
    if not forum:
        raise NotFoundError("Forum not found.")
    return forum


def get_thread(db: Session, thread_id: str) -> ForumThread:
    thread = db.get(ForumThread, thread_id)
    if not thread:
        raise NotFoundError("Thread not found.")
    return thread


def list_forums(db: Session, book_id: str) -> list[Forum]:
    catalog.get_book(db, book_id)
    return (
        db.query(Forum)
        .filter(Forum.book_id == book_id)
        .order_by(Forum.created_at.asc(), Forum.id.asc())
        .all()
    )


def create_forum(
    db: Session, book_id: str, title: str, description: str | None, created_by: str
) -> Forum:
    catalog.get_book(db, book_id)
    verdict = moderation.screen(f"{title}\n{description or ''}")
    forum = Forum(
        id=uuid4().hex,
        book_id=book_id,
        title=title.strip(),
        description=description,
        created_by=created_by,
        is_flagged=verdict.is_flagged,
        created_at=datetime.utcnow(),
    )
    with transaction(db):
        db.add(forum)
    return forum


def list_threads(db: Session, forum_id: str) -> list[ForumThread]:
    get_forum(db, forum_id)
    return (
        db.query(ForumThread)
        .filter(ForumThread.forum_id == forum_id)
        .order_by(ForumThread.created_at.desc(), ForumThread.id.desc())
        .all()
    )


def create_thread(
    db: Session,
    forum_id: str,
    author_id: str,
    title: str,
    content: str,
    thread_type: str = "discussion",
    chapter: int | None = None,
    is_anonymous: bool = False,
) -> ForumThread:
    get_forum(db, forum_id)
    if thread_type not in THREAD_TYPES:
        raise ValidationError(f"Unknown thread type: {thread_type}.")
    # Blocking content raises before any row exists.
    verdict = moderation.screen(f"{title}\n{content}")

    thread = ForumThread(
        id=uuid4().hex,
        forum_id=forum_id,
        author_id=author_id,
        title=title.strip(),
        content=content,
        thread_type=thread_type,
        chapter=chapter,
        is_anonymous=is_anonymous,
        is_flagged=verdict.is_flagged,
        created_at=datetime.utcnow(),
    )
    with transaction(db):
        db.add(thread)
        db.flush()
        if not thread.is_flagged:
            ledger.reward(db, author_id, settings.reward_thread_points, "Created forum thread")
    return thread


def list_posts(
    db: Session, forum_id: str | None = None, thread_id: str | None = None
) -> list[ForumPost]:
    query = db.query(ForumPost)
    if thread_id:
        get_thread(db, thread_id)
        query = query.filter(ForumPost.thread_id == thread_id)
    else:
        get_forum(db, forum_id)
        # Forum stream only; replies are listed under their thread.
        query = query.filter(ForumPost.forum_id == forum_id, ForumPost.thread_id.is_(None))
    return query.order_by(ForumPost.created_at.asc(), ForumPost.id.asc()).all()


def post_thread_message(
    db: Session,
    author_id: str,
    content: str,
    forum_id: str | None = None,
    thread_id: str | None = None,
    is_anonymous: bool = False,
    chapter: int | None = None,
) -> ForumPost:
    """Post into a forum stream, or as a reply when ``thread_id`` is given."""
    if thread_id:
        thread = get_thread(db, thread_id)
        forum_id = thread.forum_id
    elif forum_id:
        get_forum(db, forum_id)
    else:
        raise ValidationError("A forum or thread is required.")

    verdict = moderation.screen(content)
    post = ForumPost(
        id=uuid4().hex,
        forum_id=forum_id,
        thread_id=thread_id,
        author_id=author_id,
        content=content,
        chapter=chapter,
        is_anonymous=is_anonymous,
        is_flagged=verdict.is_flagged,
        created_at=datetime.utcnow(),
    )
    with transaction(db):
        db.add(post)
        db.flush()
        if not post.is_flagged:
            ledger.reward(db, author_id, settings.reward_post_points, "Posted in forum")
    if post.is_flagged:
        logger.info(f"Forum post {post.id} stored as flagged")
    return post
