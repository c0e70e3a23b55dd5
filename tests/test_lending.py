from __future__ import annotations

import pytest

from factories import MEMBER_ID, OUTSIDER_ID, OWNER_ID, LIBRARY_ID, seed_game
from gametaverns.modules.lending.models import LoanStatus, assert_transition
from fastapi import HTTPException

LOANS = "/api/v1/loans"


def request_loan(client, current_user, game_id, user_id=MEMBER_ID, **extra):
    current_user.login(user_id)
    return client.post(LOANS, json={"game_id": game_id, **extra})


def act(client, current_user, loan_id, action, user_id=OWNER_ID, json=None):
    current_user.login(user_id)
    return client.post(f"{LOANS}/{loan_id}/{action}", json=json if json is not None else {})


def test_assert_transition_allows_only_forward_moves():
    assert_transition("requested", LoanStatus.APPROVED)
    assert_transition("approved", LoanStatus.ACTIVE)
    assert_transition("active", LoanStatus.RETURNED)
    with pytest.raises(HTTPException) as exc_info:
        assert_transition("returned", LoanStatus.ACTIVE)
    assert exc_info.value.status_code == 409


def test_request_loan_creates_requested_loan(client, db, current_user):
    game = seed_game(db)

    response = request_loan(client, current_user, game["id"], notes="Back by Friday")

    assert response.status_code == 201
    loan = response.json()
    assert loan["status"] == "requested"
    assert loan["borrower_user_id"] == MEMBER_ID
    assert loan["lender_user_id"] == OWNER_ID
    assert loan["library_id"] == LIBRARY_ID
    assert loan["borrower_notes"] == "Back by Friday"


def test_owner_cannot_borrow_own_game(client, db, current_user):
    game = seed_game(db)

    response = request_loan(client, current_user, game["id"], user_id=OWNER_ID)

    assert response.status_code == 400
    assert response.json()["detail"] == "You cannot borrow from your own library"


def test_request_for_unknown_game_is_404(client, current_user):
    response = request_loan(client, current_user, "missing-game")

    assert response.status_code == 404


def test_full_loan_lifecycle_notifies_waitlist(client, db, current_user):
    game = seed_game(db)
    db.seed("library_settings", {"library_id": LIBRARY_ID, "default_loan_duration_days": 14})
    loan_id = request_loan(client, current_user, game["id"]).json()["id"]

    current_user.login(OUTSIDER_ID)
    entry = client.post(f"{LOANS}/waitlist", json={"game_id": game["id"]})
    assert entry.status_code == 201

    approved = act(client, current_user, loan_id, "approve", json={"condition_out": "Like new"})
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"
    assert approved.json()["due_date"] is not None
    assert approved.json()["condition_out"] == "Like new"

    active = act(client, current_user, loan_id, "pickup")
    assert active.json()["status"] == "active"
    assert active.json()["borrowed_at"] is not None

    returned = act(client, current_user, loan_id, "return", json={"condition_in": "Good"})
    assert returned.json()["status"] == "returned"
    assert returned.json()["condition_in"] == "Good"

    waitlist = db.rows("loan_waitlist")
    assert waitlist[0]["status"] == "notified"
    assert waitlist[0]["notified_at"] is not None


def test_illegal_transition_is_conflict(client, db, current_user):
    game = seed_game(db)
    loan_id = request_loan(client, current_user, game["id"]).json()["id"]

    response = act(client, current_user, loan_id, "return")

    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot move a loan from requested to returned"


def test_only_lender_can_approve(client, db, current_user):
    game = seed_game(db)
    loan_id = request_loan(client, current_user, game["id"]).json()["id"]

    response = act(client, current_user, loan_id, "approve", user_id=MEMBER_ID)

    assert response.status_code == 403


def test_borrower_cancel_frees_the_copy(client, db, current_user):
    game = seed_game(db)
    loan_id = request_loan(client, current_user, game["id"]).json()["id"]

    availability = client.get(f"{LOANS}/availability/{game['id']}").json()
    assert availability == {"available": False, "copies_owned": 1, "active_loans": 1, "copies_available": 0}

    lender_cancel = act(client, current_user, loan_id, "cancel", user_id=OWNER_ID)
    assert lender_cancel.status_code == 403

    cancelled = act(client, current_user, loan_id, "cancel", user_id=MEMBER_ID)
    assert cancelled.json()["status"] == "cancelled"
    assert client.get(f"{LOANS}/availability/{game['id']}").json()["available"] is True


def test_no_copy_available_is_conflict(client, db, current_user):
    game = seed_game(db)
    request_loan(client, current_user, game["id"])

    response = request_loan(client, current_user, game["id"], user_id=OUTSIDER_ID)

    assert response.status_code == 409


def test_max_open_loans_rule(client, db, current_user):
    first = seed_game(db, title="Azul")
    second = seed_game(db, title="Patchwork")
    db.seed("library_settings", {"library_id": LIBRARY_ID, "max_loans_per_borrower": 1})
    request_loan(client, current_user, first["id"])

    response = request_loan(client, current_user, second["id"])

    assert response.status_code == 400
    assert "at most 1" in response.json()["detail"]


def test_min_rating_rule_only_applies_to_rated_borrowers(client, db, current_user):
    game = seed_game(db, copies_owned=2)
    db.seed("library_settings", {"library_id": LIBRARY_ID, "min_borrower_rating": 4})
    db.seed("borrower_reputation", {"user_id": MEMBER_ID, "total_ratings": 3, "average_rating": 2.5})

    rejected = request_loan(client, current_user, game["id"])
    unrated = request_loan(client, current_user, game["id"], user_id=OUTSIDER_ID)

    assert rejected.status_code == 403
    assert unrated.status_code == 201


def test_rate_borrower_once_after_return(client, db, current_user):
    game = seed_game(db)
    loan_id = request_loan(client, current_user, game["id"]).json()["id"]

    too_early = act(client, current_user, loan_id, "rating", json={"rating": 5})
    assert too_early.status_code == 409

    act(client, current_user, loan_id, "approve")
    act(client, current_user, loan_id, "pickup")
    act(client, current_user, loan_id, "return")

    rated = act(client, current_user, loan_id, "rating", json={"rating": 4, "review": "Careful borrower"})
    assert rated.status_code == 201
    assert rated.json()["rated_user_id"] == MEMBER_ID

    again = act(client, current_user, loan_id, "rating", json={"rating": 1})
    assert again.status_code == 409
    assert again.json()["detail"] == "This loan has already been rated"


def test_rating_out_of_range_is_rejected(client, db, current_user):
    game = seed_game(db)
    loan_id = request_loan(client, current_user, game["id"]).json()["id"]

    response = act(client, current_user, loan_id, "rating", json={"rating": 6})

    assert response.status_code == 422


def test_loan_hidden_from_other_users(client, db, current_user):
    game = seed_game(db)
    loan_id = request_loan(client, current_user, game["id"]).json()["id"]

    current_user.login(OUTSIDER_ID)
    assert client.get(f"{LOANS}/{loan_id}").status_code == 404

    current_user.login(OWNER_ID)
    assert client.get(f"{LOANS}/{loan_id}").json()["id"] == loan_id


def test_borrowed_and_lent_lists(client, db, current_user):
    game = seed_game(db)
    loan_id = request_loan(client, current_user, game["id"]).json()["id"]

    assert [loan["id"] for loan in client.get(f"{LOANS}/borrowed").json()] == [loan_id]
    current_user.login(OWNER_ID)
    assert [loan["id"] for loan in client.get(f"{LOANS}/lent").json()] == [loan_id]
    assert client.get(f"{LOANS}/borrowed").json() == []


def test_waitlist_join_twice_is_conflict(client, db, current_user):
    game = seed_game(db)
    current_user.login(OUTSIDER_ID)

    first = client.post(f"{LOANS}/waitlist", json={"game_id": game["id"]})
    second = client.post(f"{LOANS}/waitlist", json={"game_id": game["id"]})

    assert first.status_code == 201
    assert second.status_code == 409
    assert len(client.get(f"{LOANS}/waitlist/{game['id']}").json()) == 1


def test_leave_waitlist_only_own_entry(client, db, current_user):
    game = seed_game(db)
    current_user.login(OUTSIDER_ID)
    entry_id = client.post(f"{LOANS}/waitlist", json={"game_id": game["id"]}).json()["id"]

    current_user.login(MEMBER_ID)
    assert client.delete(f"{LOANS}/waitlist/{entry_id}").status_code == 403

    current_user.login(OUTSIDER_ID)
    assert client.delete(f"{LOANS}/waitlist/{entry_id}").status_code == 204
    assert db.rows("loan_waitlist") == []


def test_reputation_defaults_for_unrated_user(client):
    response = client.get(f"{LOANS}/reputation/{OUTSIDER_ID}")

    assert response.json() == {
        "user_id": OUTSIDER_ID, "total_ratings": 0, "average_rating": 0, "positive_ratings": 0
    }


def test_loan_request_requires_login(client, db):
    game = seed_game(db)

    response = client.post(LOANS, json={"game_id": game["id"]})

    assert response.status_code == 401
