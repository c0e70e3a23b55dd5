# Supabase table: direct_messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- direct_messages
  - id: uuid (primary key)
  - sender_id: uuid (not null)
  - recipient_id: uuid (not null)
  - content: text (not null)
  - read_at: timestamp (nullable)
  - sender_ip_hash: text (nullable) - salted SHA-256 of the sender IP, set for game inquiries
  - created_at: timestamp (default: now())
- games (read only here): id, title, library_id, is_for_sale
"""

import re

MESSAGES_TABLE = "direct_messages"

MAX_SENDER_NAME_LENGTH = 100
MAX_MESSAGE_LENGTH = 2000

URL_PATTERN = re.compile(
    r"(?:https?://|www\.)\S+|[a-zA-Z0-9][-a-zA-Z0-9]*\.[a-zA-Z]{2,}(?:/\S*)?",
    re.IGNORECASE,
)
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
