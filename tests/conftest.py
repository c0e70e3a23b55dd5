from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

import httpx
import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from factories import LIBRARY_ID, MEMBER_ID, OWNER_ID, SERVICE_ROLE_KEY  # noqa: E402

os.environ.setdefault("SUPABASE_URL", "http://supabase.test")
os.environ.setdefault("SUPABASE_KEY", "anon-test-key")
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = SERVICE_ROLE_KEY
os.environ.setdefault("IP_HASH_SALT", "test-salt")
os.environ["DISCORD_BOT_TOKEN"] = ""
os.environ.pop("TURNSTILE_SECRET_KEY", None)
os.environ.pop("FIREBASE_SERVICE_ACCOUNT_JSON", None)

from fake_supabase import FakeSupabase  # noqa: E402

from gametaverns.core.dependencies import get_current_user_id, get_optional_user  # noqa: E402
from gametaverns.database.supabase_client import get_service_supabase  # noqa: E402
from gametaverns.main import app  # noqa: E402
from gametaverns.modules.notifications.discord_client import DiscordClient  # noqa: E402
from gametaverns.modules.notifications.routes import get_discord_client  # noqa: E402

UNIQUE_CONSTRAINTS = {
    "borrower_ratings": [("loan_id",)],
    "event_registrations": [("event_id", "attendee_name")],
    "trade_listings": [("user_id", "game_id")],
    "trade_wants": [("user_id", "bgg_id")],
    "poll_votes": [("poll_id", "option_id", "voter_identifier")],
    "event_tournament_players": [("event_id", "player_name")],
    "user_roles": [("user_id", "role")],
    "event_tournament_config": [("event_id",)],
}


class CurrentUser:
    """Who the overridden auth dependencies say is calling."""

    def __init__(self):
        self.user: Optional[Dict] = None

    def login(self, user_id: str, email: Optional[str] = None, display_name: Optional[str] = None) -> Dict:
        self.user = {
            "id": user_id,
            "email": email or f"{user_id[-4:]}@example.com",
            "user_metadata": {"display_name": display_name} if display_name else {},
            "app_metadata": {},
        }
        return self.user

    def logout(self) -> None:
        self.user = None


@pytest.fixture()
def db() -> FakeSupabase:
    fake = FakeSupabase(unique=UNIQUE_CONSTRAINTS)
    fake.seed("libraries", {"id": LIBRARY_ID, "owner_id": OWNER_ID, "name": "Tavern", "slug": "tavern"})
    fake.seed("library_members", {"library_id": LIBRARY_ID, "user_id": MEMBER_ID})
    return fake


@pytest.fixture()
def current_user() -> CurrentUser:
    return CurrentUser()


@pytest.fixture()
def discord_requests() -> List[httpx.Request]:
    return []


@pytest.fixture()
def client(db: FakeSupabase, current_user: CurrentUser, discord_requests: List[httpx.Request]):
    def handler(request: httpx.Request) -> httpx.Response:
        discord_requests.append(request)
        return httpx.Response(204)

    def require_user() -> Dict:
        if current_user.user is None:
            raise HTTPException(status_code=401, detail="Authentication required")
        return current_user.user

    app.dependency_overrides[get_service_supabase] = lambda: db
    app.dependency_overrides[get_current_user_id] = require_user
    app.dependency_overrides[get_optional_user] = lambda: current_user.user
    app.dependency_overrides[get_discord_client] = lambda: DiscordClient(
        bot_token="", transport=httpx.MockTransport(handler)
    )
    app.state.limiter.enabled = False

    yield TestClient(app)

    app.dependency_overrides.clear()
    app.state.limiter.enabled = True

