# Supabase tables: event_tournament_config, event_tournament_players, event_tournament_matches
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- event_tournament_config
  - id: uuid (primary key)
  - event_id: uuid (unique, foreign key to library_events.id)
  - format: text (default: 'single_elimination') - values: single_elimination, double_elimination, round_robin, swiss
  - max_rounds: integer (nullable)
  - current_round: integer (default: 0)
  - status: text (default: 'setup') - values: setup, in_progress, completed
  - seed_method: text (default: 'random') - values: random, manual, elo
  - third_place_match: boolean (default: false)
  - points_win, points_draw, points_loss: integer (defaults 3, 1, 0)
  - tiebreaker: text (default: 'head_to_head')
  - notes: text (nullable)
- event_tournament_players
  - id: uuid (primary key)
  - event_id: uuid
  - player_name: text (not null), unique per event
  - player_user_id: uuid (nullable)
  - seed: integer (nullable)
  - is_eliminated: boolean (default: false)
  - wins, losses, draws, points: integer (default: 0)
  - tiebreaker_score: numeric (default: 0)
- event_tournament_matches
  - id: uuid (primary key)
  - event_id: uuid
  - round_number, match_number: integer (1-based)
  - bracket_position: text (nullable) - 'winners' for elimination brackets
  - player1_id, player2_id, winner_id: uuid (nullable)
  - player1_score, player2_score: integer (nullable)
  - status: text (default: 'pending') - values: pending, in_progress, completed, bye
  - scheduled_time: timestamp (nullable)
  - table_label, notes: text (nullable)
"""

from enum import Enum

CONFIG_TABLE = "event_tournament_config"
PLAYERS_TABLE = "event_tournament_players"
MATCHES_TABLE = "event_tournament_matches"


class TournamentFormat(str, Enum):
    SINGLE_ELIMINATION = "single_elimination"
    DOUBLE_ELIMINATION = "double_elimination"
    ROUND_ROBIN = "round_robin"
    SWISS = "swiss"


class MatchStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BYE = "bye"


ELIMINATION_FORMATS = {TournamentFormat.SINGLE_ELIMINATION.value, TournamentFormat.DOUBLE_ELIMINATION.value}
