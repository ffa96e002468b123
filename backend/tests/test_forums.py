from __future__ import annotations

from bookswap.services.moderation import FLAGGED_PLACEHOLDER

from conftest import balance_of


def _forum(client, headers):
    book_id = client.post("/api/books", json={"title": "Emma", "author": "Jane Austen"}, headers=headers).json()["id"]
    resp = client.post(f"/api/books/{book_id}/forums", json={"title": "Emma readers"}, headers=headers)
    assert resp.status_code == 200, resp.text
    return book_id, resp.json()["id"]


def test_forum_listing_per_book(client, make_user):
    _, headers = make_user()
    book_id, forum_id = _forum(client, headers)
    forums = client.get(f"/api/books/{book_id}/forums").json()["forums"]
    assert [f["id"] for f in forums] == [forum_id]


def test_clean_thread_rewards_author(client, make_user):
    _, headers = make_user("Ada")
    _, forum_id = _forum(client, headers)

    resp = client.post(
        f"/api/forums/{forum_id}/threads",
        json={"title": "Chapter 3", "content": "What did Mr Knightley mean?", "threadType": "chapter_debate", "chapter": 3},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    thread = resp.json()
    assert thread["authorName"] == "Ada"
    assert thread["isFlagged"] is False
    assert balance_of(client, headers) == 2


def test_flagged_post_is_hidden_and_not_rewarded(client, make_user):
    _, headers = make_user()
    _, forum_id = _forum(client, headers)

    resp = client.post(f"/api/forums/{forum_id}/posts", json={"content": "what a stupid ending"}, headers=headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["isFlagged"] is True
    assert balance_of(client, headers) == 0

    posts = client.get(f"/api/forums/{forum_id}/posts").json()["posts"]
    assert posts[0]["content"] == FLAGGED_PLACEHOLDER


def test_blocked_thread_is_rejected(client, make_user):
    _, headers = make_user()
    _, forum_id = _forum(client, headers)

    resp = client.post(
        f"/api/forums/{forum_id}/threads",
        json={"title": "Rant", "content": "kys"},
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "ABUSIVE_CONTENT"
    assert client.get(f"/api/forums/{forum_id}/threads").json()["threads"] == []
    assert balance_of(client, headers) == 0


def test_anonymous_replies_hide_author(client, make_user):
    _, ada = make_user("Ada")
    _, bob = make_user("Bob")
    _, forum_id = _forum(client, ada)
    thread_id = client.post(
        f"/api/forums/{forum_id}/threads",
        json={"title": "Ending", "content": "Thoughts on the ending?"},
        headers=ada,
    ).json()["id"]

    resp = client.post(
        f"/api/threads/{thread_id}/posts",
        json={"content": "I cried.", "isAnonymous": True},
        headers=bob,
    )
    assert resp.status_code == 200, resp.text

    replies = client.get(f"/api/threads/{thread_id}/posts").json()["posts"]
    assert len(replies) == 1
    assert replies[0]["authorId"] is None
    assert replies[0]["authorName"] == "Anonymous"
    assert replies[0]["threadId"] == thread_id
    # Replies live under their thread, not in the forum stream.
    assert client.get(f"/api/forums/{forum_id}/posts").json()["posts"] == []


def test_unknown_forum_is_404(client, make_user):
    _, headers = make_user()
    resp = client.post("/api/forums/missing/posts", json={"content": "hello"}, headers=headers)
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NOT_FOUND"


def test_flagged_thread_title_is_withheld(client, make_user):
    _, headers = make_user()
    _, forum_id = _forum(client, headers)

    resp = client.post(
        f"/api/forums/{forum_id}/threads",
        json={"title": "the author is an idiot", "content": "Chapter two drags on."},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["isFlagged"] is True
    assert "idiot" not in resp.json()["title"]

    thread = client.get(f"/api/forums/{forum_id}/threads").json()["threads"][0]
    assert thread["isFlagged"] is True
    assert thread["title"] == FLAGGED_PLACEHOLDER
    assert thread["content"] == FLAGGED_PLACEHOLDER
    assert balance_of(client, headers) == 0


def test_flagged_forum_is_withheld(client, make_user):
    _, headers = make_user()
    book_id = client.post("/api/books", json={"title": "Emma", "author": "Jane Austen"}, headers=headers).json()["id"]

    resp = client.post(
        f"/api/books/{book_id}/forums",
        json={"title": "you idiot readers", "description": "shut up about Emma"},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["isFlagged"] is True

    forum = client.get(f"/api/books/{book_id}/forums").json()["forums"][0]
    assert forum["isFlagged"] is True
    assert forum["title"] == FLAGGED_PLACEHOLDER
    assert forum["description"] is None


def test_blocked_forum_is_rejected(client, make_user):
    _, headers = make_user()
    book_id = client.post("/api/books", json={"title": "Emma", "author": "Jane Austen"}, headers=headers).json()["id"]

    resp = client.post(f"/api/books/{book_id}/forums", json={"title": "kys"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "ABUSIVE_CONTENT"
    assert client.get(f"/api/books/{book_id}/forums").json()["forums"] == []
