from __future__ import annotations

from factories import MEMBER_ID, OUTSIDER_ID, OWNER_ID, seed_game
from gametaverns.modules.messages.service import hash_ip

SEND_MESSAGE = "/functions/v1/send-message"
MESSAGES = "/api/v1/messages"


def inquiry(game_id, message="Is this still available?", sender_name="Sam"):
    return {"game_id": game_id, "sender_name": sender_name, "message": message}


def test_inquiry_delivers_direct_message_to_owner(client, db, current_user):
    game = seed_game(db, is_for_sale=True)
    current_user.login(MEMBER_ID)

    response = client.post(SEND_MESSAGE, json=inquiry(game["id"], message="  Is this still available?  "))

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Message sent successfully", "recipient_id": OWNER_ID}
    rows = db.rows("direct_messages")
    assert len(rows) == 1
    assert rows[0]["sender_id"] == MEMBER_ID
    assert rows[0]["recipient_id"] == OWNER_ID
    assert rows[0]["content"] == "Re: Wingspan - Is this still available?"
    assert rows[0]["sender_ip_hash"] == hash_ip("testclient")


def test_sixth_inquiry_within_window_is_rate_limited(client, db, current_user):
    game = seed_game(db, is_for_sale=True)
    current_user.login(MEMBER_ID)

    statuses = [client.post(SEND_MESSAGE, json=inquiry(game["id"])).status_code for _ in range(5)]
    sixth = client.post(SEND_MESSAGE, json=inquiry(game["id"]))

    assert statuses == [200] * 5
    assert sixth.status_code == 429
    assert sixth.json() == {"success": False, "error": "Too many messages. Please try again later."}
    assert len(db.rows("direct_messages")) == 5


def test_rate_limit_is_per_client_ip(client, db, current_user):
    game = seed_game(db, is_for_sale=True)
    current_user.login(MEMBER_ID)
    for _ in range(5):
        client.post(SEND_MESSAGE, json=inquiry(game["id"]), headers={"x-forwarded-for": "203.0.113.7"})

    response = client.post(SEND_MESSAGE, json=inquiry(game["id"]), headers={"x-forwarded-for": "198.51.100.2"})

    assert response.status_code == 200


def test_missing_fields_rejected_before_auth(client, db):
    response = client.post(SEND_MESSAGE, json={"game_id": "x"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "All fields are required"}


def test_guest_inquiry_requires_login(client, db):
    game = seed_game(db, is_for_sale=True)

    response = client.post(SEND_MESSAGE, json=inquiry(game["id"]))

    assert response.status_code == 401
    assert response.json()["error"] == "Authentication required to send messages"


def test_links_are_rejected(client, db, current_user):
    game = seed_game(db, is_for_sale=True)
    current_user.login(MEMBER_ID)

    response = client.post(SEND_MESSAGE, json=inquiry(game["id"], message="See https://spam.example/deal"))

    assert response.status_code == 400
    assert response.json()["error"] == "Links are not allowed in messages"


def test_bare_domains_are_rejected(client, db, current_user):
    game = seed_game(db, is_for_sale=True)
    current_user.login(MEMBER_ID)

    response = client.post(SEND_MESSAGE, json=inquiry(game["id"], message="cheaper at boardgames.shop"))

    assert response.status_code == 400


def test_name_and_message_length_limits(client, db, current_user):
    game = seed_game(db, is_for_sale=True)
    current_user.login(MEMBER_ID)

    long_name = client.post(SEND_MESSAGE, json=inquiry(game["id"], sender_name="x" * 101))
    blank_message = client.post(SEND_MESSAGE, json=inquiry(game["id"], message="   "))
    long_message = client.post(SEND_MESSAGE, json=inquiry(game["id"], message="a" * 2001))

    assert long_name.json()["error"] == "Name must be between 1 and 100 characters"
    assert blank_message.json()["error"] == "Message must be between 1 and 2000 characters"
    assert long_message.json()["error"] == "Message must be between 1 and 2000 characters"


def test_invalid_game_id(client, current_user):
    current_user.login(MEMBER_ID)

    response = client.post(SEND_MESSAGE, json=inquiry("not-a-uuid"))

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid game ID"


def test_unknown_game_is_404(client, current_user):
    current_user.login(MEMBER_ID)

    response = client.post(SEND_MESSAGE, json=inquiry("22222222-2222-2222-2222-222222222222"))

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Game not found"}


def test_game_must_be_for_sale(client, db, current_user):
    game = seed_game(db, is_for_sale=False)
    current_user.login(MEMBER_ID)

    response = client.post(SEND_MESSAGE, json=inquiry(game["id"]))

    assert response.status_code == 400
    assert response.json()["error"] == "This game is not available for sale"


def test_owner_cannot_inquire_about_own_game(client, db, current_user):
    game = seed_game(db, is_for_sale=True)
    current_user.login(OWNER_ID)

    response = client.post(SEND_MESSAGE, json=inquiry(game["id"]))

    assert response.status_code == 400
    assert response.json()["error"] == "You cannot send an inquiry for your own game"
    assert db.rows("direct_messages") == []


def test_direct_message_conversation_and_unread(client, db, current_user):
    current_user.login(MEMBER_ID)
    first = client.post(MESSAGES, json={"recipient_id": OUTSIDER_ID, "content": "Game night Friday?"})
    assert first.status_code == 201

    current_user.login(OUTSIDER_ID)
    assert client.get(f"{MESSAGES}/unread-count").json() == {"unread": 1}
    client.post(MESSAGES, json={"recipient_id": MEMBER_ID, "content": "I'm in"})

    conversation = client.get(f"{MESSAGES}/with/{MEMBER_ID}").json()
    assert [m["content"] for m in conversation] == ["Game night Friday?", "I'm in"]

    assert client.post(f"{MESSAGES}/with/{MEMBER_ID}/read").json() == {"updated": 1}
    assert client.get(f"{MESSAGES}/unread-count").json() == {"unread": 0}


def test_cannot_message_yourself(client, current_user):
    current_user.login(MEMBER_ID)

    response = client.post(MESSAGES, json={"recipient_id": MEMBER_ID, "content": "hello me"})

    assert response.status_code == 400
