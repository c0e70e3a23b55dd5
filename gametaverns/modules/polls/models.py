# Supabase tables: game_polls, poll_options, poll_votes
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- game_polls
  - id: uuid (primary key)
  - library_id: uuid (foreign key to libraries.id)
  - title: text (not null)
  - description: text (nullable)
  - poll_type: text - values: quick, game_night
  - status: text (default: 'open') - values: open, closed
  - max_votes_per_user: integer (default: 1)
  - show_results_before_close: boolean (default: false)
  - voting_ends_at: timestamp (nullable)
  - event_date: timestamp (nullable)
  - event_location: text (nullable)
  - share_token: text (generated by the database)
  - created_by: uuid
- poll_options
  - id: uuid (primary key)
  - poll_id: uuid (foreign key to game_polls.id, ON DELETE CASCADE)
  - game_id: uuid (foreign key to games.id)
  - display_order: integer
- poll_votes
  - id: uuid (primary key)
  - poll_id, option_id: uuid
  - voter_identifier: text - user id for members, client generated id for guests
  - voter_name: text (nullable)
  - unique (poll_id, option_id, voter_identifier)
"""

POLLS_TABLE = "game_polls"
OPTIONS_TABLE = "poll_options"
VOTES_TABLE = "poll_votes"

POLL_OPEN = "open"
POLL_CLOSED = "closed"

POLL_URL_TEMPLATE = "https://{slug}.gametaverns.com/poll/{token}"
