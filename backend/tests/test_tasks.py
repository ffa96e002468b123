from __future__ import annotations

from bookswap.core.database import transaction
from bookswap.models import PointsBalance
from bookswap.tasks import audit_ledger, notify_wishlist_watchers

from conftest import fund, register


def test_listing_notifies_wishlist_watchers(client, make_user):
    _, owner = make_user("Owner")
    _, watcher = make_user("Watcher")
    _, muted = make_user("Muted")
    book_id = client.post("/api/books", json={"title": "Emma", "author": "Jane Austen"}, headers=owner).json()["id"]

    client.post("/api/wishlist", json={"bookId": book_id}, headers=watcher)
    client.post("/api/wishlist", json={"bookId": book_id, "notifyOnAvailable": False}, headers=muted)
    # Watching your own title does not notify you.
    client.post("/api/wishlist", json={"bookId": book_id}, headers=owner)

    copy_id = client.post(
        "/api/physical-books",
        json={"bookId": book_id, "condition": "good", "location": "Bath"},
        headers=owner,
    ).json()["id"]
    listing = client.post("/api/listings", json={"physicalBookId": copy_id, "location": "Bath"}, headers=owner)
    assert listing.status_code == 200, listing.text

    body = client.get("/api/notifications", headers=watcher).json()
    assert body["unread"] == 1
    notification = body["notifications"][0]
    assert notification["kind"] == "wishlist_available"
    assert notification["listingId"] == listing.json()["id"]
    assert client.get("/api/notifications", headers=muted).json()["notifications"] == []
    assert client.get("/api/notifications", headers=owner).json()["notifications"] == []

    resp = client.put(f"/api/notifications/{notification['id']}/read", headers=watcher)
    assert resp.status_code == 200
    assert resp.json()["isRead"] is True
    assert client.get("/api/notifications", headers=watcher).json()["unread"] == 0
    assert client.put(f"/api/notifications/{notification['id']}/read", headers=owner).status_code == 404


def test_notify_unknown_listing(database):
    assert notify_wishlist_watchers("missing") == {"error": "LISTING_NOT_FOUND"}


def test_audit_reports_drift_without_fixing(session):
    ada = register(session, "Ada", "ada@example.com")
    bob = register(session, "Bob", "bob@example.com")
    fund(session, ada.id, 10)
    fund(session, bob.id, 4)

    report = audit_ledger.delay().get()
    assert report == {"checked": 2, "drift": []}

    with transaction(session):
        session.query(PointsBalance).filter(PointsBalance.user_id == bob.id).update({"balance": 99})

    report = audit_ledger(bob.id)
    assert report["checked"] == 1
    assert report["drift"] == [
        {"user_id": bob.id, "balance": 99, "expected": 4, "consistent": False}
    ]
    session.expire_all()
    assert session.get(PointsBalance, bob.id).balance == 99
