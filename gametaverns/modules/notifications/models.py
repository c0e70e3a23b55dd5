# Supabase tables read by the notification fan-out
# This file documents the expected database schema

"""
Expected Supabase table structure:
- library_settings (one row per library)
  - library_id: uuid (foreign key to libraries.id, unique)
  - discord_webhook_url: text (nullable)
  - discord_notifications: jsonb (nullable) - per event type toggles, e.g. {"game_added": false}
- user_profiles
  - user_id: uuid (foreign key to auth.users.id)
  - discord_user_id: text (nullable) - set by the Discord OAuth link flow
- user_push_tokens
  - id: uuid (primary key)
  - user_id: uuid (not null)
  - token: text (not null, unique)
  - platform: text - values: android, ios, web
"""

from enum import Enum

PUSH_TOKENS_TABLE = "user_push_tokens"


class NotificationEvent(str, Enum):
    GAME_ADDED = "game_added"
    WISHLIST_VOTE = "wishlist_vote"
    MESSAGE_RECEIVED = "message_received"
    POLL_CREATED = "poll_created"
    POLL_CLOSED = "poll_closed"
    LOAN_REQUESTED = "loan_requested"


# Private events go to the library owner's DMs; everything else to the library webhook
PRIVATE_EVENTS = {NotificationEvent.MESSAGE_RECEIVED.value, NotificationEvent.LOAN_REQUESTED.value}

EMBED_COLORS = {
    "game_added": 0x22C55E,
    "wishlist_vote": 0xF59E0B,
    "message_received": 0x3B82F6,
    "poll_created": 0x8B5CF6,
    "poll_closed": 0x6366F1,
    "loan_requested": 0x0EA5E9,
}
DEFAULT_EMBED_COLOR = 0x6B7280
