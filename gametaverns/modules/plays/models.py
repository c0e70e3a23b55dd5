# Supabase tables: game_sessions, game_session_players
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- game_sessions
  - id: uuid (primary key)
  - game_id: uuid (foreign key to games.id, not null, ON DELETE CASCADE)
  - played_at: timestamp (not null)
  - duration_minutes: integer (nullable)
  - notes: text (nullable)
  - location: text (nullable)
  - bgg_play_id: text (nullable) - dedup key for imported plays; "<play id>" or "<play id>_<n>" for quantity > 1
  - import_source: text (nullable) - values: manual, bgg
  - created_at: timestamp (default: now())
- game_session_players
  - id: uuid (primary key)
  - session_id: uuid (foreign key to game_sessions.id, ON DELETE CASCADE)
  - player_name: text (not null)
  - score: integer (nullable)
  - is_winner: boolean (default: false)
  - is_first_play: boolean (default: false)
  - color: text (nullable)
- games (read only here): id, library_id, title, bgg_id
"""

SESSIONS_TABLE = "game_sessions"
SESSION_PLAYERS_TABLE = "game_session_players"

IMPORT_SOURCE_BGG = "bgg"
IMPORT_SOURCE_MANUAL = "manual"

# BGG plays carry a date only
DEFAULT_PLAY_TIME = "T12:00:00Z"
