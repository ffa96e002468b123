from __future__ import annotations

import pytest
from kombu.exceptions import OperationalError

from bookswap.api.routes import listings as listing_routes
from bookswap.core.errors import DuplicateIsbnError, ListingConflictError, NotAuthorizedError
from bookswap.models import Listing
from bookswap.services import catalog

from conftest import balance_of, register


def test_reused_isbn_returns_existing_book_id(client, make_user):
    _, headers = make_user()
    first = client.post(
        "/api/books",
        json={"title": "Dune", "author": "Frank Herbert", "isbn": "978-0-441-17271-9"},
        headers=headers,
    )
    assert first.status_code == 200, first.text
    assert first.json()["isbn"] == "9780441172719"

    second = client.post(
        "/api/books",
        json={"title": "Dune (reprint)", "author": "F. Herbert", "isbn": "9780441172719"},
        headers=headers,
    )
    assert second.status_code == 409
    error = second.json()["error"]
    assert error["code"] == "ISBN_EXISTS"
    assert error["bookId"] == first.json()["id"]


def test_books_without_isbn_never_collide(session):
    owner = register(session, "Ada", "ada@example.com")
    first = catalog.create_book_metadata(session, "Notes", "Anon", created_by=owner.id)
    second = catalog.create_book_metadata(session, "Notes", "Anon", created_by=owner.id)
    assert first.id != second.id


def test_duplicate_isbn_in_service_layer(session):
    catalog.create_book_metadata(session, "Dune", "Frank Herbert", isbn="9780441172719")
    with pytest.raises(DuplicateIsbnError) as excinfo:
        catalog.create_book_metadata(session, "Dune", "Frank Herbert", isbn="9780441172719")
    assert excinfo.value.book_id


def test_hyphenated_isbn_matches_stored_book(session):
    dune = catalog.create_book_metadata(session, "Dune", "Frank Herbert", isbn="978-0-441-17271-9")
    assert dune.isbn == "9780441172719"
    with pytest.raises(DuplicateIsbnError) as excinfo:
        catalog.create_book_metadata(session, "Dune", "Frank Herbert", isbn="978 0441 172719")
    assert excinfo.value.book_id == dune.id
    assert [b.id for b in catalog.search(session, isbn="978-0441-172719")] == [dune.id]


def test_second_active_listing_conflicts(client, make_user, listed_copy):
    _, headers = make_user()
    _, copy_id, listing_id = listed_copy(headers)

    resp = client.post("/api/listings", json={"physicalBookId": copy_id, "location": "Paris"}, headers=headers)
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "LISTING_EXISTS"

    listings = client.get("/api/listings").json()["listings"]
    assert [row["id"] for row in listings] == [listing_id]
    assert listings[0]["location"] == "Lyon"


def test_only_owner_can_list(session):
    owner = register(session, "Ada", "ada@example.com")
    other = register(session, "Bob", "bob@example.com")
    book = catalog.create_book_metadata(session, "Emma", "Jane Austen")
    copy = catalog.register_physical_copy(session, book.id, owner.id, "good", "Bath")
    with pytest.raises(NotAuthorizedError):
        catalog.create_listing(session, copy.id, other.id, "Bath")


def test_relisting_after_removal(session):
    owner = register(session, "Ada", "ada@example.com")
    book = catalog.create_book_metadata(session, "Emma", "Jane Austen")
    copy = catalog.register_physical_copy(session, book.id, owner.id, "good", "Bath")
    first = catalog.create_listing(session, copy.id, owner.id, "Bath")
    with pytest.raises(ListingConflictError):
        catalog.create_listing(session, copy.id, owner.id, "Bath")

    catalog.remove_listing(session, first.id, owner.id)
    second = catalog.create_listing(session, copy.id, owner.id, "Bath")
    assert second.id != first.id
    assert session.query(Listing).filter(Listing.is_active.is_(True)).count() == 1


def test_listing_rewards_the_lister(client, make_user, listed_copy):
    _, headers = make_user()
    assert balance_of(client, headers) == 0
    listed_copy(headers)
    assert balance_of(client, headers) == 5


def test_valuation_adds_wishlist_demand(client, make_user):
    _, owner = make_user("Owner")
    book_id = client.post("/api/books", json={"title": "Emma", "author": "Jane Austen"}, headers=owner).json()["id"]
    for _ in range(7):
        _, watcher = make_user()
        assert client.post("/api/wishlist", json={"bookId": book_id}, headers=watcher).status_code == 200

    copy_id = client.post(
        "/api/physical-books",
        json={"bookId": book_id, "condition": "good", "location": "Bath"},
        headers=owner,
    ).json()["id"]
    client.post("/api/listings", json={"physicalBookId": copy_id, "location": "Bath"}, headers=owner)

    detail = client.get(f"/api/physical-books/{copy_id}").json()
    # good = 10, demand bonus capped at 5
    assert detail["estimatedPoints"] == 15
    assert detail["valuations"][0]["demandBonus"] == 5


def test_search_is_case_insensitive(client, make_user):
    owner_id, headers = make_user()
    client.post("/api/books", json={"title": "The Left Hand of Darkness", "author": "Ursula K. Le Guin"}, headers=headers)
    client.post("/api/books", json={"title": "Dune", "author": "Frank Herbert"}, headers=headers)

    titles = [b["title"] for b in client.get("/api/books/search", params={"query": "le guin"}).json()["books"]]
    assert titles == ["The Left Hand of Darkness"]
    assert client.get("/api/books/search", params={"ownerId": owner_id}).json()["books"] == []


def test_owner_edits_copy_and_others_cannot(client, make_user, listed_copy):
    _, owner = make_user()
    _, other = make_user()
    _, copy_id, _ = listed_copy(owner)

    resp = client.put(f"/api/physical-books/{copy_id}", json={"location": "Paris"}, headers=owner)
    assert resp.status_code == 200, resp.text
    assert resp.json()["location"] == "Paris"
    assert client.get("/api/listings").json()["listings"][0]["location"] == "Paris"

    resp = client.put(f"/api/physical-books/{copy_id}", json={"location": "Nice"}, headers=other)
    assert resp.status_code == 403


def test_reading_history(client, make_user, listed_copy):
    _, owner = make_user()
    _, reader = make_user("Reader")
    _, copy_id, _ = listed_copy(owner)

    resp = client.post(
        f"/api/physical-books/{copy_id}/history",
        json={"city": "Lyon", "readingStart": "2024-01-01", "readingEnd": "2024-02-01", "rating": 4},
        headers=reader,
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["readerName"] == "Reader"

    bad = client.post(
        f"/api/physical-books/{copy_id}/history",
        json={"readingStart": "2024-02-01", "readingEnd": "2024-01-01"},
        headers=reader,
    )
    assert bad.status_code == 400
    assert bad.json()["error"]["code"] == "VALIDATION_ERROR"

    history = client.get(f"/api/physical-books/{copy_id}/history").json()
    assert len(history) == 1
    assert history[0]["rating"] == 4


def test_book_conditions_catalogue(client):
    conditions = client.get("/api/book-conditions").json()
    assert {"key": "fair", "label": "Fair", "points": 8} in conditions


def test_listing_survives_broker_outage(client, make_user, monkeypatch):
    _, headers = make_user()

    class _DownedTask:
        def delay(self, *args, **kwargs):
            raise OperationalError("broker down")

    monkeypatch.setattr(listing_routes, "notify_wishlist_watchers", _DownedTask())
    book_id = client.post("/api/books", json={"title": "Emma", "author": "Jane Austen"}, headers=headers).json()["id"]
    copy_id = client.post(
        "/api/physical-books", json={"bookId": book_id, "condition": "good", "location": "Lyon"}, headers=headers
    ).json()["id"]

    resp = client.post("/api/listings", json={"physicalBookId": copy_id, "location": "Lyon"}, headers=headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["isActive"] is True
    assert balance_of(client, headers) == 5
