from __future__ import annotations

from datetime import date

import pytest

from bookswap.models import PaymentTransaction
from bookswap.services.payments import card_expired, luhn_valid, parse_expiry

from conftest import VALID_CARD, balance_of


@pytest.mark.parametrize(
    "number, expected",
    [
        ("4242424242424242", True),
        ("4242 4242 4242 4242", True),
        ("4242424242424241", False),
        ("1234", False),
    ],
)
def test_luhn(number, expected):
    assert luhn_valid(number) is expected


def test_expiry_parsing():
    assert parse_expiry("07/29") == (2029, 7)
    assert parse_expiry("07/2029") == (2029, 7)
    assert parse_expiry("13/29") is None
    assert parse_expiry("0729") is None


def test_card_valid_through_expiry_month():
    today = date(2026, 5, 20)
    assert card_expired("05/26", today) is False
    assert card_expired("04/26", today) is True


def test_purchase_credits_points(client, make_user):
    _, headers = make_user()
    resp = client.post("/api/buy-points", json={"points": 10, "cardDetails": VALID_CARD}, headers=headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["balance"] == 10
    assert body["payment"]["status"] == "completed"
    assert body["payment"]["amount"] == 30
    assert body["payment"]["cardLast4"] == "4242"


def test_declined_card_stores_failed_payment(client, make_user, session):
    user_id, headers = make_user()
    card = dict(VALID_CARD, number="4242424242424241")

    resp = client.post("/api/buy-points", json={"points": 10, "cardDetails": card}, headers=headers)
    assert resp.status_code == 402
    assert resp.json()["error"]["code"] == "PAYMENT_DECLINED"
    assert balance_of(client, headers) == 0

    payments = session.query(PaymentTransaction).filter(PaymentTransaction.user_id == user_id).all()
    assert [p.status for p in payments] == ["failed"]
    assert payments[0].card_last4 == "4241"


def test_expired_card_is_declined(client, make_user):
    _, headers = make_user()
    card = dict(VALID_CARD, expiry="01/20")
    resp = client.post("/api/buy-points", json={"points": 5, "cardDetails": card}, headers=headers)
    assert resp.status_code == 402


def test_purchase_limits(client, make_user):
    _, headers = make_user()
    assert client.post("/api/buy-points", json={"points": 0, "cardDetails": VALID_CARD}, headers=headers).status_code == 400
    resp = client.post("/api/buy-points", json={"points": 10_001, "cardDetails": VALID_CARD}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


def test_payment_history_lists_failures(client, make_user):
    _, headers = make_user()
    declined = dict(VALID_CARD, number="4242424242424241")
    client.post("/api/buy-points", json={"points": 4, "cardDetails": VALID_CARD}, headers=headers)
    client.post("/api/buy-points", json={"points": 4, "cardDetails": declined}, headers=headers)

    resp = client.get("/api/points/payments", headers=headers)
    assert resp.status_code == 200
    rows = resp.json()
    assert sorted(row["status"] for row in rows) == ["completed", "failed"]
    failed = next(row for row in rows if row["status"] == "failed")
    assert failed["failureReason"]
