from __future__ import annotations


def test_same_pair_returns_same_chat(client, make_user):
    ada_id, ada = make_user()
    bob_id, bob = make_user()

    first = client.post("/api/chats", json={"participantIds": [ada_id, bob_id]}, headers=ada)
    assert first.status_code == 200, first.text
    again = client.post("/api/chats", json={"participantIds": [ada_id, bob_id]}, headers=ada)
    reversed_order = client.post("/api/chats", json={"participantIds": [ada_id, bob_id]}, headers=bob)

    assert first.json()["id"] == again.json()["id"] == reversed_order.json()["id"]
    assert client.get("/api/chats", headers=ada).json()["total"] == 1


def test_cannot_open_chat_for_others(client, make_user):
    _, ada = make_user()
    bob_id, _ = make_user()
    cy_id, _ = make_user()

    resp = client.post("/api/chats", json={"participantIds": [bob_id, cy_id]}, headers=ada)
    assert resp.status_code == 403


def test_chat_with_self_is_invalid(client, make_user):
    ada_id, ada = make_user()
    resp = client.post("/api/chats", json={"participantIds": [ada_id, ada_id]}, headers=ada)
    assert resp.status_code == 400


def test_messages_newest_first_and_unread_count(client, make_user):
    ada_id, ada = make_user()
    bob_id, bob = make_user("Bob")
    chat_id = client.post("/api/chats", json={"participantIds": [ada_id, bob_id]}, headers=ada).json()["id"]

    for text in ("hello", "is the book still available?"):
        resp = client.post(f"/api/chats/{chat_id}/messages", json={"message": text}, headers=ada)
        assert resp.status_code == 200, resp.text

    messages = client.get(f"/api/chats/{chat_id}/messages", headers=bob).json()["messages"]
    assert [m["content"] for m in messages] == ["is the book still available?", "hello"]

    chats = client.get("/api/chats", headers=bob).json()["chats"]
    assert chats[0]["unreadCount"] == 2
    assert chats[0]["lastMessage"]["content"] == "is the book still available?"
    # Own messages never count as unread.
    assert client.get("/api/chats", headers=ada).json()["chats"][0]["unreadCount"] == 0

    assert client.put(f"/api/chats/{chat_id}/read", headers=bob).json() == {"updated": 2}
    assert client.get("/api/chats", headers=bob).json()["chats"][0]["unreadCount"] == 0


def test_outsiders_cannot_read_messages(client, make_user):
    ada_id, ada = make_user()
    bob_id, _ = make_user()
    _, eve = make_user()
    chat_id = client.post("/api/chats", json={"participantIds": [ada_id, bob_id]}, headers=ada).json()["id"]

    assert client.get(f"/api/chats/{chat_id}/messages", headers=eve).status_code == 403
    assert client.post(f"/api/chats/{chat_id}/messages", json={"message": "hi"}, headers=eve).status_code == 403
