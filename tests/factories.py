"""Shared ids and row builders for the tests. Must not import gametaverns (settings load from env)."""

from __future__ import annotations

from typing import Dict

OWNER_ID = "00000000-0000-0000-0000-00000000000a"
MEMBER_ID = "00000000-0000-0000-0000-00000000000b"
OUTSIDER_ID = "00000000-0000-0000-0000-00000000000c"
LIBRARY_ID = "11111111-1111-1111-1111-111111111111"

SERVICE_ROLE_KEY = "service-role-test-key"
SERVICE_ROLE_HEADERS = {"Authorization": f"Bearer {SERVICE_ROLE_KEY}"}


def seed_game(db, **fields) -> Dict:
    row = {
        "library_id": LIBRARY_ID,
        "title": "Wingspan",
        "bgg_id": "266192",
        "copies_owned": 1,
        "is_for_sale": False,
        "image_url": None,
    }
    row.update(fields)
    return db.seed("games", row)[0]


def seed_library(db, library_id: str, owner_id: str, slug: str = "other") -> Dict:
    return db.seed("libraries", {"id": library_id, "owner_id": owner_id, "name": slug.title(), "slug": slug})[0]


def play_xml(play_id: str, objectid: str = "174430", name: str = "Gloomhaven", date: str = "2024-03-02", players: str = "") -> str:
    """One BGG <play> element; `players` is any extra child markup (players, comments)."""
    return (
        f'<play id="{play_id}" date="{date}" quantity="1" length="90" incomplete="0" nowinstats="0" location="Home">'
        f'<item name="{name}" objecttype="thing" objectid="{objectid}"><subtypes><subtype value="boardgame"/></subtypes></item>'
        f"{players}"
        "</play>"
    )


def plays_page(total: int, *plays: str) -> str:
    return f'<?xml version="1.0" encoding="utf-8"?><plays username="alice" userid="1" total="{total}" page="1">{"".join(plays)}</plays>'


async def no_sleep(_seconds: float) -> None:
    return None
