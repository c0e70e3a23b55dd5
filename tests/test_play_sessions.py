from __future__ import annotations

import pytest

from factories import MEMBER_ID, OUTSIDER_ID, seed_game

PLAYS = "/api/v1/plays"


@pytest.fixture()
def game(db):
    return seed_game(db, title="Cascadia")


def log_play(client, game_id, played_at="2024-05-01T19:00:00Z", **extra):
    return client.post(PLAYS, json={"game_id": game_id, "played_at": played_at, **extra})


def test_member_logs_manual_play_with_players(client, db, game, current_user):
    current_user.login(MEMBER_ID)

    response = log_play(client, game["id"], duration_minutes=45, players=[
        {"player_name": "Ada", "score": 91, "is_winner": True},
        {"player_name": "Ben", "score": 80, "color": "Green"},
    ])

    assert response.status_code == 201
    body = response.json()
    assert body["import_source"] == "manual"
    assert body["bgg_play_id"] is None
    assert [p["player_name"] for p in body["players"]] == ["Ada", "Ben"]
    assert len(db.rows("game_session_players")) == 2


def test_outsider_cannot_log_plays(client, game, current_user):
    current_user.login(OUTSIDER_ID)

    assert log_play(client, game["id"]).status_code == 403


def test_logging_unknown_game_is_404(client, current_user):
    current_user.login(MEMBER_ID)

    assert log_play(client, "missing").status_code == 404


def test_history_is_public_and_newest_first(client, game, current_user):
    current_user.login(MEMBER_ID)
    log_play(client, game["id"], played_at="2024-01-01T12:00:00Z", notes="old")
    log_play(client, game["id"], played_at="2024-06-01T12:00:00Z", notes="new")
    current_user.logout()

    response = client.get(f"{PLAYS}/games/{game['id']}")

    assert response.status_code == 200
    assert [s["notes"] for s in response.json()] == ["new", "old"]


def test_delete_removes_players_too(client, db, game, current_user):
    current_user.login(MEMBER_ID)
    session_id = log_play(client, game["id"], players=[{"player_name": "Ada"}]).json()["id"]

    current_user.login(OUTSIDER_ID)
    assert client.delete(f"{PLAYS}/{session_id}").status_code == 403

    current_user.login(MEMBER_ID)
    assert client.delete(f"{PLAYS}/{session_id}").status_code == 204
    assert db.rows("game_sessions") == []
    assert db.rows("game_session_players") == []
    assert client.delete(f"{PLAYS}/{session_id}").status_code == 404
