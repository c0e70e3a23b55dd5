from __future__ import annotations

import json

import pytest

from factories import LIBRARY_ID, MEMBER_ID, OUTSIDER_ID, OWNER_ID, seed_game, seed_library

POLLS = "/api/v1/polls"
WEBHOOK_URL = "https://discord.test/api/webhooks/1/abc"


@pytest.fixture()
def games(db):
    return [seed_game(db, title=title) for title in ("Azul", "Brass", "Cascadia")]


@pytest.fixture()
def poll(client, db, games, current_user):
    current_user.login(OWNER_ID)
    response = client.post(POLLS, json={
        "library_id": LIBRARY_ID,
        "title": "Friday pick",
        "game_ids": [g["id"] for g in games],
    })
    assert response.status_code == 201
    current_user.logout()
    return response.json()


def options(db, poll_id):
    rows = [o for o in db.rows("poll_options") if o["poll_id"] == poll_id]
    return sorted(rows, key=lambda o: o["display_order"])


def guest_vote(client, poll_id, option_id, voter="guest-1"):
    return client.post(f"{POLLS}/{poll_id}/votes", json={"option_id": option_id, "voter_identifier": voter})


def test_create_poll_adds_ordered_options(client, db, poll, games):
    rows = options(db, poll["id"])

    assert poll["status"] == "open"
    assert poll["created_by"] == OWNER_ID
    assert [o["game_id"] for o in rows] == [g["id"] for g in games]
    assert [o["display_order"] for o in rows] == [0, 1, 2]


def test_create_poll_notifies_library_webhook(client, db, games, current_user, discord_requests):
    db.seed("library_settings", {"library_id": LIBRARY_ID, "discord_webhook_url": WEBHOOK_URL})
    current_user.login(OWNER_ID)

    client.post(POLLS, json={"library_id": LIBRARY_ID, "title": "Friday pick", "game_ids": [games[0]["id"], games[1]["id"]]})

    assert len(discord_requests) == 1
    assert str(discord_requests[0].url) == WEBHOOK_URL
    embed = json.loads(discord_requests[0].content)["embeds"][0]
    assert embed["title"].endswith("New Poll Created")
    assert embed["description"] == "**Friday pick**"
    assert embed["url"].startswith("https://tavern.gametaverns.com/poll/")


def test_disabled_notification_type_is_not_sent(client, db, games, current_user, discord_requests):
    db.seed("library_settings", {
        "library_id": LIBRARY_ID,
        "discord_webhook_url": WEBHOOK_URL,
        "discord_notifications": {"poll_created": False},
    })
    current_user.login(OWNER_ID)

    response = client.post(POLLS, json={"library_id": LIBRARY_ID, "title": "Quiet", "game_ids": [games[0]["id"], games[1]["id"]]})

    assert response.status_code == 201
    assert discord_requests == []


def test_only_owner_creates_polls(client, games, current_user):
    current_user.login(MEMBER_ID)

    response = client.post(POLLS, json={"library_id": LIBRARY_ID, "title": "Mine", "game_ids": [g["id"] for g in games]})

    assert response.status_code == 403


def test_poll_needs_two_distinct_library_games(client, db, games, current_user):
    other_library = "77777777-7777-7777-7777-777777777777"
    seed_library(db, other_library, OUTSIDER_ID)
    foreign = seed_game(db, library_id=other_library, title="Elsewhere")
    current_user.login(OWNER_ID)

    repeated = client.post(POLLS, json={"library_id": LIBRARY_ID, "title": "x", "game_ids": [games[0]["id"]] * 2})
    mixed = client.post(POLLS, json={"library_id": LIBRARY_ID, "title": "x", "game_ids": [games[0]["id"], foreign["id"]]})
    single = client.post(POLLS, json={"library_id": LIBRARY_ID, "title": "x", "game_ids": [games[0]["id"]]})

    assert repeated.status_code == 400
    assert repeated.json()["detail"] == "A poll needs at least two different games"
    assert mixed.status_code == 400
    assert mixed.json()["detail"] == "All games must belong to this library"
    assert single.status_code == 422


def test_guest_voting_rules(client, db, poll):
    first, second, _ = options(db, poll["id"])

    ok = guest_vote(client, poll["id"], first["id"])
    repeat = guest_vote(client, poll["id"], first["id"])
    over_limit = guest_vote(client, poll["id"], second["id"])
    other_guest = guest_vote(client, poll["id"], second["id"], voter="guest-2")

    assert ok.status_code == 201
    assert ok.json()["voter_identifier"] == "guest-1"
    assert repeat.status_code == 409
    assert repeat.json()["detail"] == "You already voted for this option"
    assert over_limit.status_code == 400
    assert over_limit.json()["detail"] == "Maximum 1 vote(s) allowed"
    assert other_guest.status_code == 201


def test_signed_in_vote_uses_user_id(client, db, poll, current_user):
    option = options(db, poll["id"])[0]
    current_user.login(MEMBER_ID)

    response = client.post(f"{POLLS}/{poll['id']}/votes", json={"option_id": option["id"], "voter_identifier": "spoofed"})

    assert response.json()["voter_identifier"] == MEMBER_ID


def test_guest_vote_needs_identifier(client, db, poll):
    option = options(db, poll["id"])[0]

    response = client.post(f"{POLLS}/{poll['id']}/votes", json={"option_id": option["id"]})

    assert response.status_code == 400


def test_vote_for_unknown_option(client, poll):
    response = guest_vote(client, poll["id"], "not-an-option")

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid option"


def test_expired_poll_rejects_votes(client, db, games, current_user):
    current_user.login(OWNER_ID)
    poll = client.post(POLLS, json={
        "library_id": LIBRARY_ID,
        "title": "Old",
        "voting_ends_at": "2000-01-01T00:00:00Z",
        "game_ids": [games[0]["id"], games[1]["id"]],
    }).json()
    current_user.logout()

    response = guest_vote(client, poll["id"], options(db, poll["id"])[0]["id"])

    assert response.status_code == 400
    assert response.json()["detail"] == "Voting has ended"


def test_remove_vote_frees_the_slot(client, db, poll):
    first, second, _ = options(db, poll["id"])
    guest_vote(client, poll["id"], first["id"])

    removed = client.delete(f"{POLLS}/{poll['id']}/votes/{first['id']}", params={"voter_identifier": "guest-1"})

    assert removed.status_code == 204
    assert guest_vote(client, poll["id"], second["id"]).status_code == 201


def test_results_hidden_until_close_except_for_owner(client, db, poll, current_user, discord_requests):
    db.seed("library_settings", {"library_id": LIBRARY_ID, "discord_webhook_url": WEBHOOK_URL})
    first, second, third = options(db, poll["id"])
    guest_vote(client, poll["id"], second["id"], voter="g1")
    guest_vote(client, poll["id"], second["id"], voter="g2")
    guest_vote(client, poll["id"], first["id"], voter="g3")

    assert client.get(f"{POLLS}/{poll['id']}/results").status_code == 403

    current_user.login(OWNER_ID)
    early = client.get(f"{POLLS}/{poll['id']}/results").json()
    assert early["total_votes"] == 3

    closed = client.post(f"{POLLS}/{poll['id']}/close")
    assert closed.status_code == 200
    assert closed.json()["status"] == "closed"
    assert closed.json()["winner"]["title"] == "Brass"
    assert [o["vote_count"] for o in closed.json()["options"]] == [1, 2, 0]

    assert len(discord_requests) == 1
    embed = json.loads(discord_requests[0].content)["embeds"][0]
    assert embed["title"] == "📊 Poll Results"
    assert {"name": "🏆 Winner", "value": "Brass", "inline": False} in embed["fields"]

    assert client.post(f"{POLLS}/{poll['id']}/close").status_code == 409

    current_user.logout()
    public = client.get(f"{POLLS}/{poll['id']}/results")
    assert public.status_code == 200
    assert guest_vote(client, poll["id"], third["id"], voter="g4").json()["detail"] == "Poll is closed"


def test_list_and_delete_polls(client, db, poll, current_user):
    assert [p["id"] for p in client.get(POLLS, params={"library_id": LIBRARY_ID}).json()] == [poll["id"]]

    current_user.login(MEMBER_ID)
    assert client.delete(f"{POLLS}/{poll['id']}").status_code == 403

    current_user.login(OWNER_ID)
    assert client.delete(f"{POLLS}/{poll['id']}").status_code == 204
    assert client.get(f"{POLLS}/{poll['id']}").status_code == 404
    assert db.rows("poll_options") == []
