from __future__ import annotations

from types import SimpleNamespace

import pytest

from fake_supabase import FakeSupabase
from gametaverns.scripts import create_admin as script


@pytest.fixture()
def supabase():
    return FakeSupabase(unique={"user_roles": [("user_id", "role")]})


def admin_roles(supabase):
    return [(r["user_id"], r["role"]) for r in supabase.rows("user_roles")]


def test_creates_confirmed_user_and_grants_admin(supabase):
    result = script.create_admin(supabase, "admin@example.com", "correct-horse", "Admin")

    assert result["created"] is True
    assert result["granted"] is True
    assert admin_roles(supabase) == [(result["user_id"], "admin")]
    assert supabase.auth.admin.users[0].user_metadata == {"display_name": "Admin"}


def test_rerun_is_idempotent(supabase):
    first = script.create_admin(supabase, "admin@example.com", "correct-horse")
    second = script.create_admin(supabase, "ADMIN@example.com", "correct-horse")

    assert second == {"user_id": first["user_id"], "created": False, "granted": False}
    assert len(supabase.auth.admin.users) == 1
    assert len(admin_roles(supabase)) == 1


def test_finds_existing_user_beyond_first_page(supabase):
    supabase.auth.admin.users.extend(
        SimpleNamespace(id=f"user-{i}", email=f"player{i}@example.com", user_metadata={}) for i in range(250)
    )

    result = script.create_admin(supabase, "player230@example.com", "correct-horse")

    assert result["user_id"] == "user-230"
    assert result["created"] is False


@pytest.mark.parametrize("argv", [
    [],
    ["--email", "admin@example.com"],
    ["--email", "admin@example.com", "--password", "short"],
])
def test_main_rejects_bad_arguments(monkeypatch, argv):
    monkeypatch.delenv("ADMIN_EMAIL", raising=False)
    monkeypatch.delenv("ADMIN_PASSWORD", raising=False)

    assert script.main(argv) == 1


def test_main_runs_against_service_client(monkeypatch, supabase):
    monkeypatch.setattr(script, "get_service_supabase", lambda: supabase)

    assert script.main(["--email", " admin@example.com ", "--password", "correct-horse"]) == 0
    assert supabase.auth.admin.users[0].email == "admin@example.com"
    assert len(admin_roles(supabase)) == 1


def test_main_needs_service_role_key(monkeypatch):
    monkeypatch.setattr(script.settings, "supabase_service_role_key", None)

    assert script.main(["--email", "admin@example.com", "--password", "correct-horse"]) == 1
