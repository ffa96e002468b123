from __future__ import annotations


def test_wishlist_add_is_idempotent(client, make_user):
    _, headers = make_user()
    book_id = client.post("/api/books", json={"title": "Emma", "author": "Jane Austen"}, headers=headers).json()["id"]

    first = client.post("/api/wishlist", json={"bookId": book_id}, headers=headers)
    second = client.post("/api/wishlist", json={"bookId": book_id}, headers=headers)
    assert first.status_code == second.status_code == 200
    assert first.json()["id"] == second.json()["id"]

    items = client.get("/api/wishlist", headers=headers).json()["items"]
    assert len(items) == 1
    assert items[0]["book"]["title"] == "Emma"

    assert client.delete(f"/api/wishlist/{book_id}", headers=headers).status_code == 200
    assert client.get("/api/wishlist", headers=headers).json()["items"] == []
    assert client.delete(f"/api/wishlist/{book_id}", headers=headers).status_code == 404


def test_unknown_book_cannot_be_watched(client, make_user):
    _, headers = make_user()
    assert client.post("/api/wishlist", json={"bookId": "missing"}, headers=headers).status_code == 404


def test_exchange_points_crud(client, make_user):
    _, owner = make_user()
    _, other = make_user()
    payload = {
        "name": "Café Lecture",
        "address": "1 Rue de la Paix",
        "latitude": 45.76,
        "longitude": 4.83,
        "operatingHours": "9-18",
    }
    resp = client.post("/api/exchange-points", json=payload, headers=owner)
    assert resp.status_code == 200, resp.text
    point_id = resp.json()["id"]

    bad = client.post("/api/exchange-points", json=dict(payload, latitude=120), headers=owner)
    assert bad.status_code == 400

    resp = client.put(f"/api/exchange-points/{point_id}", json={"operatingHours": "10-19"}, headers=owner)
    assert resp.status_code == 200
    assert resp.json()["operatingHours"] == "10-19"
    assert resp.json()["name"] == "Café Lecture"

    assert client.put(f"/api/exchange-points/{point_id}", json={"name": "Mine"}, headers=other).status_code == 403
    assert client.delete(f"/api/exchange-points/{point_id}", headers=owner).status_code == 200
    assert client.get("/api/exchange-points").json() == []
