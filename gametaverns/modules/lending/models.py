# Supabase tables: game_loans, loan_waitlist, borrower_ratings
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- game_loans
  - id: uuid (primary key)
  - game_id: uuid (foreign key to games.id)
  - library_id: uuid (foreign key to libraries.id)
  - borrower_user_id: uuid (not null)
  - lender_user_id: uuid (not null)
  - status: text - values: requested, approved, active, returned, declined, cancelled
  - requested_at: timestamp (default: now())
  - approved_at, borrowed_at, returned_at: timestamp (nullable)
  - due_date: timestamp (nullable)
  - borrower_notes, lender_notes: text (nullable)
  - copy_id: uuid (nullable, foreign key to game_copies.id)
  - condition_out, condition_in: text (nullable)
  - damage_reported: boolean (default: false)
  - created_at: timestamp (default: now())
- loan_waitlist
  - id: uuid (primary key)
  - game_id, library_id, user_id: uuid
  - status: text - values: waiting, notified
  - notified_at: timestamp (nullable)
  - created_at: timestamp (default: now())
- borrower_ratings
  - id: uuid (primary key)
  - loan_id: uuid (unique)
  - rated_user_id, rated_by_user_id: uuid
  - rating: integer (1..5)
  - review: text (nullable)
- borrower_reputation (view): user_id, total_ratings, average_rating, positive_ratings
- library_settings (lending rules): max_loans_per_borrower, default_loan_duration_days, min_borrower_rating
"""

from enum import Enum
from typing import Dict, FrozenSet

from fastapi import HTTPException

LOANS_TABLE = "game_loans"
WAITLIST_TABLE = "loan_waitlist"
RATINGS_TABLE = "borrower_ratings"


class LoanStatus(str, Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    ACTIVE = "active"
    RETURNED = "returned"
    DECLINED = "declined"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: Dict[LoanStatus, FrozenSet[LoanStatus]] = {
    LoanStatus.REQUESTED: frozenset({LoanStatus.APPROVED, LoanStatus.DECLINED, LoanStatus.CANCELLED}),
    LoanStatus.APPROVED: frozenset({LoanStatus.ACTIVE}),
    LoanStatus.ACTIVE: frozenset({LoanStatus.RETURNED}),
    LoanStatus.RETURNED: frozenset(),
    LoanStatus.DECLINED: frozenset(),
    LoanStatus.CANCELLED: frozenset(),
}

# Loans that hold a copy
OPEN_STATUSES = [LoanStatus.REQUESTED.value, LoanStatus.APPROVED.value, LoanStatus.ACTIVE.value]


def assert_transition(current: str, target: LoanStatus) -> None:
    """Raise 409 unless current -> target is a legal loan move."""
    try:
        current_status = LoanStatus(current)
    except ValueError:
        raise HTTPException(status_code=409, detail=f"Unknown loan status: {current}")
    if target not in ALLOWED_TRANSITIONS[current_status]:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot move a loan from {current_status.value} to {target.value}"
        )
