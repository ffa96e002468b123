from __future__ import annotations

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="bookswap-tests-")

# Settings are read at import time, so the environment must be ready first.
os.environ["DATA_DIR"] = _TMP_DIR
os.environ["SQLITE_PATH"] = os.path.join(_TMP_DIR, "bookswap-test.db")
os.environ.pop("DATABASE_URL", None)
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["ADMIN_EMAILS"] = "operator@example.com"
os.environ["JWT_SECRET"] = "test-secret-with-enough-bytes-for-hs256"
os.environ["APP_ENV_FILE"] = os.path.join(_TMP_DIR, "missing.env")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from bookswap.core.config import settings  # noqa: E402
from bookswap.core.database import Database, transaction  # noqa: E402
from bookswap.main import create_app  # noqa: E402
from bookswap.services import accounts, catalog, ledger  # noqa: E402
from bookswap.models.points import TX_PURCHASED  # noqa: E402


VALID_CARD = {"number": "4242 4242 4242 4242", "expiry": "12/99", "cvc": "123"}


@pytest.fixture()
def database():
    db = Database.from_settings(settings)
    db.drop_all()
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture()
def session(database):
    db = database.session()
    yield db
    db.close()


@pytest.fixture()
def client(database):
    app = create_app(database)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_user(client):
    """Register and log in through the API; returns ``(user_id, headers)``."""

    counter = {"n": 0}

    def _make(name: str | None = None, email: str | None = None, password: str = "secret-pw"):
        counter["n"] += 1
        name = name or f"Reader {counter['n']}"
        email = email or f"reader{counter['n']}@example.com"
        resp = client.post(
            "/api/auth/register", json={"name": name, "email": email, "password": password}
        )
        assert resp.status_code == 200, resp.text
        resp = client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        return body["user"]["id"], {"Authorization": f"Bearer {body['token']}"}

    return _make


@pytest.fixture()
def listed_copy(client):
    """Create a title, register a copy for the caller and list it."""

    def _list(headers, condition: str = "fair", title: str = "Dune", isbn: str | None = None):
        resp = client.post(
            "/api/books", json={"title": title, "author": "Frank Herbert", "isbn": isbn}, headers=headers
        )
        assert resp.status_code == 200, resp.text
        book_id = resp.json()["id"]
        resp = client.post(
            "/api/physical-books",
            json={"bookId": book_id, "condition": condition, "location": "Lyon"},
            headers=headers,
        )
        assert resp.status_code == 200, resp.text
        copy_id = resp.json()["id"]
        resp = client.post(
            "/api/listings", json={"physicalBookId": copy_id, "location": "Lyon"}, headers=headers
        )
        assert resp.status_code == 200, resp.text
        return book_id, copy_id, resp.json()["id"]

    return _list


def balance_of(client, headers) -> int:
    resp = client.get("/api/points/balance", headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["balance"]


# ---------------------------------------------------------------- service-level helpers


def register(db, name: str, email: str):
    return accounts.register(db, name, email, "secret-pw")


def fund(db, user_id: str, amount: int) -> None:
    with transaction(db):
        ledger.apply_transaction(db, user_id, amount, TX_PURCHASED, "test funding")


def list_copy(db, owner_id: str, condition: str = "fair", title: str = "Dune"):
    book = catalog.create_book_metadata(db, title, "Frank Herbert", created_by=owner_id)
    copy = catalog.register_physical_copy(db, book.id, owner_id, condition, "Lyon")
    listing = catalog.create_listing(db, copy.id, owner_id, "Lyon")
    return book, copy, listing
