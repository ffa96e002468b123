from __future__ import annotations


def test_register_login_and_me(client):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Ada", "email": "Ada@Example.com", "password": "secret-pw"},
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["user"]["email"] == "ada@example.com"

    resp = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "secret-pw"})
    assert resp.status_code == 200, resp.text
    tokens = resp.json()
    assert tokens["token"] and tokens["refreshToken"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {tokens['token']}"})
    assert me.status_code == 200
    assert me.json()["name"] == "Ada"
    assert me.json()["stats"]["currentPoints"] == 0


def test_duplicate_email_is_rejected(client):
    payload = {"name": "Ada", "email": "ada@example.com", "password": "secret-pw"}
    assert client.post("/api/auth/register", json=payload).status_code == 200
    resp = client.post("/api/auth/register", json=dict(payload, email="ADA@example.com"))
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "EMAIL_EXISTS"


def test_wrong_password(client, make_user):
    make_user(email="ada@example.com")
    resp = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "nope-nope"})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UNAUTHENTICATED"


def test_missing_or_bad_token(client):
    resp = client.get("/api/points/balance")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UNAUTHENTICATED"

    resp = client.get("/api/points/balance", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_refresh_requires_refresh_token(client):
    client.post("/api/auth/register", json={"name": "Ada", "email": "ada@example.com", "password": "secret-pw"})
    tokens = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "secret-pw"}).json()

    resp = client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert resp.status_code == 200, resp.text
    assert resp.json()["user"]["email"] == "ada@example.com"

    resp = client.post("/api/auth/refresh", json={"refreshToken": tokens["token"]})
    assert resp.status_code == 401


def test_admin_role_from_configured_emails(client, make_user):
    make_user(email="operator@example.com")
    tokens = client.post(
        "/api/auth/login", json={"email": "operator@example.com", "password": "secret-pw"}
    ).json()
    assert tokens["user"]["role"] == "admin"


def test_profile_update_is_owner_only(client, make_user, listed_copy):
    ada_id, ada = make_user("Ada")
    bob_id, bob = make_user("Bob")
    listed_copy(ada)

    resp = client.put(f"/api/users/{ada_id}", json={"name": "Ada L."}, headers=ada)
    assert resp.status_code == 200, resp.text
    assert resp.json()["name"] == "Ada L."
    assert resp.json()["stats"]["totalBooksListed"] == 1

    assert client.put(f"/api/users/{ada_id}", json={"name": "Hacked"}, headers=bob).status_code == 403
    assert client.get(f"/api/users/{ada_id}/exchanges", headers=bob).status_code == 403
    books = client.get(f"/api/users/{ada_id}/books").json()
    assert books["total"] == 1
