from __future__ import annotations

import httpx
import pytest

from factories import LIBRARY_ID, MEMBER_ID, OUTSIDER_ID, OWNER_ID
from gametaverns.config import settings
from gametaverns.core.captcha import verify_turnstile

EVENT_ID = "33333333-3333-3333-3333-333333333333"
REGISTRATIONS = f"/api/v1/events/{EVENT_ID}/registrations"


@pytest.fixture()
def event(db):
    return db.seed("library_events", {
        "id": EVENT_ID,
        "library_id": LIBRARY_ID,
        "created_by": OWNER_ID,
        "title": "Friday Game Night",
        "max_attendees": 2,
    })[0]


def register(client, name, **extra):
    return client.post(REGISTRATIONS, json={"attendee_name": name, **extra})


def by_name(db):
    return {r["attendee_name"]: r for r in db.rows("event_registrations")}


def test_guest_registration(client, event):
    response = register(client, "  Riley  ", attendee_email="riley@example.com")

    assert response.status_code == 201
    body = response.json()
    assert body["attendee_name"] == "Riley"
    assert body["status"] == "registered"
    assert body["waitlist_position"] is None
    assert body["attendee_user_id"] is None


def test_registration_rejects_malformed_email(client, event):
    response = register(client, "Riley", attendee_email="not-an-email")

    assert response.status_code == 422


def test_signed_in_registration_links_user(client, event, current_user):
    current_user.login(MEMBER_ID)

    response = register(client, "Morgan")

    assert response.json()["attendee_user_id"] == MEMBER_ID


def test_full_event_waitlists_in_order(client, event, db):
    register(client, "A")
    register(client, "B")

    third = register(client, "C")
    fourth = register(client, "D")

    assert third.json()["status"] == "waitlisted"
    assert third.json()["waitlist_position"] == 1
    assert fourth.json()["waitlist_position"] == 2


def test_duplicate_name_is_conflict(client, event):
    register(client, "Riley")

    response = register(client, "Riley")

    assert response.status_code == 409
    assert response.json()["detail"] == "Already registered"


def test_honeypot_submission_is_rejected(client, event, db):
    response = register(client, "Bot", website_url="http://spam.example")

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid submission"
    assert db.rows("event_registrations") == []


def test_unknown_event_is_404(client, db):
    response = client.post(
        "/api/v1/events/44444444-4444-4444-4444-444444444444/registrations", json={"attendee_name": "Riley"}
    )

    assert response.status_code == 404


def test_guest_must_pass_captcha_when_configured(client, event, monkeypatch):
    monkeypatch.setattr(settings, "turnstile_secret_key", "turnstile-secret")

    response = register(client, "Riley")

    assert response.status_code == 400
    assert response.json()["detail"] == "CAPTCHA verification failed"


def test_signed_in_users_skip_captcha(client, event, current_user, monkeypatch):
    monkeypatch.setattr(settings, "turnstile_secret_key", "turnstile-secret")
    current_user.login(MEMBER_ID)

    response = register(client, "Morgan")

    assert response.status_code == 201


def test_attendee_cancel_promotes_waitlist_and_renumbers(client, event, db, current_user):
    current_user.login(MEMBER_ID)
    mine = register(client, "Morgan").json()
    current_user.logout()
    register(client, "B")
    register(client, "C")
    register(client, "D")

    current_user.login(MEMBER_ID)
    response = client.post(f"/api/v1/events/registrations/{mine['id']}/cancel")

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    rows = by_name(db)
    assert rows["C"]["status"] == "registered"
    assert rows["C"]["waitlist_position"] is None
    assert rows["D"]["status"] == "waitlisted"
    assert rows["D"]["waitlist_position"] == 1

    again = client.post(f"/api/v1/events/registrations/{mine['id']}/cancel")
    assert again.status_code == 409


def test_strangers_cannot_cancel(client, event, current_user):
    registration = register(client, "Riley").json()
    current_user.login(OUTSIDER_ID)

    response = client.post(f"/api/v1/events/registrations/{registration['id']}/cancel")

    assert response.status_code == 403


def test_organizer_removes_registration(client, event, db, current_user):
    first = register(client, "A").json()
    register(client, "B")
    register(client, "C")
    current_user.login(OWNER_ID)

    response = client.delete(f"/api/v1/events/registrations/{first['id']}")

    assert response.status_code == 204
    rows = by_name(db)
    assert "A" not in rows
    assert rows["C"]["status"] == "registered"


def test_list_registrations(client, event):
    register(client, "A")
    register(client, "B")

    response = client.get(REGISTRATIONS)

    assert [r["attendee_name"] for r in response.json()] == ["A", "B"]


@pytest.mark.asyncio
async def test_verify_turnstile_posts_token(monkeypatch):
    monkeypatch.setattr(settings, "turnstile_secret_key", "turnstile-secret")
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = request.content.decode()
        return httpx.Response(200, json={"success": True})

    assert await verify_turnstile("token-123", "203.0.113.7", transport=httpx.MockTransport(handler)) is True
    assert "response=token-123" in seen["body"]
    assert "remoteip=203.0.113.7" in seen["body"]


@pytest.mark.asyncio
async def test_verify_turnstile_rejects_failed_challenge(monkeypatch):
    monkeypatch.setattr(settings, "turnstile_secret_key", "turnstile-secret")
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"success": False}))

    assert await verify_turnstile("bad", transport=transport) is False
