from __future__ import annotations

import pytest

from bookswap.core.database import transaction
from bookswap.core.errors import InsufficientFundsError, ValidationError
from bookswap.models import PointsBalance, PointTransaction, User
from bookswap.models.points import TX_EARNED, TX_REFUNDED, TX_SPENT
from bookswap.services import ledger

from conftest import fund, register


def test_balance_row_created_with_user(session):
    user = register(session, "Ada", "ada@example.com")
    assert ledger.get_balance_summary(session, user.id) == {
        "balance": 0,
        "total_earned": 0,
        "total_spent": 0,
    }


def test_overdraft_is_rejected_and_balance_unchanged(session):
    user = register(session, "Ada", "ada@example.com")
    fund(session, user.id, 5)

    with pytest.raises(InsufficientFundsError):
        with transaction(session):
            ledger.apply_transaction(session, user.id, 6, TX_SPENT, "too much")

    assert ledger.get_balance(session, user.id) == 5
    spent = (
        session.query(PointTransaction)
        .filter(PointTransaction.user_id == user.id, PointTransaction.type == TX_SPENT)
        .count()
    )
    assert spent == 0


@pytest.mark.parametrize("amount", [0, -3])
def test_non_positive_amounts_are_rejected(session, amount):
    user = register(session, "Ada", "ada@example.com")
    with pytest.raises(ValidationError):
        ledger.apply_transaction(session, user.id, amount, TX_EARNED)


def test_unknown_transaction_type_is_rejected(session):
    user = register(session, "Ada", "ada@example.com")
    with pytest.raises(ValidationError):
        ledger.apply_transaction(session, user.id, 3, "gifted")


def test_balance_matches_transaction_log(session):
    ada = register(session, "Ada", "ada@example.com")
    bob = register(session, "Bob", "bob@example.com")

    fund(session, ada.id, 20)
    with transaction(session):
        ledger.apply_transaction(session, ada.id, 8, TX_SPENT, "exchange")
        ledger.apply_transaction(session, bob.id, 8, TX_EARNED, "exchange")
    with transaction(session):
        ledger.apply_transaction(session, ada.id, 2, TX_REFUNDED, "goodwill")
    with pytest.raises(InsufficientFundsError):
        with transaction(session):
            ledger.apply_transaction(session, bob.id, 50, TX_SPENT)

    for user in session.query(User).all():
        report = ledger.audit_balance(session, user.id)
        assert report["consistent"], report
    assert ledger.get_balance(session, ada.id) == 14
    assert ledger.get_balance(session, bob.id) == 8
    summary = ledger.get_balance_summary(session, ada.id)
    assert summary["total_earned"] == 22
    assert summary["total_spent"] == 8


def test_credit_creates_missing_balance_row(session):
    user = register(session, "Ada", "ada@example.com")
    with transaction(session):
        session.query(PointsBalance).filter(PointsBalance.user_id == user.id).delete()
    fund(session, user.id, 7)
    assert ledger.get_balance(session, user.id) == 7


def test_transactions_listed_newest_first(client, make_user):
    _, headers = make_user()
    for points in (3, 4):
        resp = client.post(
            "/api/buy-points",
            json={"points": points, "cardDetails": {"number": "4242424242424242", "expiry": "12/99", "cvc": "123"}},
            headers=headers,
        )
        assert resp.status_code == 200, resp.text

    resp = client.get("/api/points/transactions", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 2
    assert [tx["amount"] for tx in body["transactions"]] == [4, 3]
    assert all(tx["type"] == "purchased" for tx in body["transactions"])
