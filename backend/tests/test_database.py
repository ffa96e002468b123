from __future__ import annotations

from fastapi.testclient import TestClient

from bookswap.core.database import Database
from bookswap.main import create_app


def test_unreachable_store_fails_closed():
    database = Database.from_url("sqlite:////nonexistent/bookswap/x.db")
    # No startup event: the store is already gone when the first request lands.
    client = TestClient(create_app(database))
    try:
        resp = client.get("/api/listings")
        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "DATABASE_UNAVAILABLE"

        resp = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "whatever1"})
        assert resp.status_code == 503
    finally:
        database.dispose()
