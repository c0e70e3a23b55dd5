from supabase import Client
from postgrest.exceptions import APIError
from gametaverns.modules.lending.models import (
    LOANS_TABLE, WAITLIST_TABLE, RATINGS_TABLE, OPEN_STATUSES, LoanStatus, assert_transition
)
from gametaverns.modules.lending.schemas import (
    LoanApprove, LoanResponse, LoanReturn, AvailabilityResponse,
    WaitlistEntryResponse, BorrowerRatingCreate, BorrowerRatingResponse
)
from typing import List, Optional
from datetime import datetime, timedelta, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class LendingService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_game(self, game_id: str) -> dict:
        try:
            result = self.supabase.table("games")\
                .select("id, title, library_id, image_url, copies_owned")\
                .eq("id", game_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Game not found")
            return result.data
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _get_library_owner(self, library_id: str) -> str:
        result = self.supabase.table("libraries")\
            .select("owner_id")\
            .eq("id", library_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Library not found")
        return result.data["owner_id"]

    def _lending_rules(self, library_id: str) -> dict:
        result = self.supabase.table("library_settings")\
            .select("max_loans_per_borrower, default_loan_duration_days, min_borrower_rating")\
            .eq("library_id", library_id)\
            .maybe_single()\
            .execute()
        return (result.data if result else None) or {}

    def _borrower_open_loans(self, borrower_id: str, library_id: str) -> int:
        result = self.supabase.table(LOANS_TABLE)\
            .select("id")\
            .eq("borrower_user_id", borrower_id)\
            .eq("library_id", library_id)\
            .in_("status", OPEN_STATUSES)\
            .execute()
        return len(result.data or [])

    def get_reputation(self, user_id: str) -> Optional[dict]:
        result = self.supabase.table("borrower_reputation")\
            .select("*")\
            .eq("user_id", user_id)\
            .maybe_single()\
            .execute()
        return result.data if result else None

    def _check_rules(self, borrower_id: str, library_id: str) -> None:
        rules = self._lending_rules(library_id)

        max_loans = rules.get("max_loans_per_borrower")
        if max_loans and self._borrower_open_loans(borrower_id, library_id) >= max_loans:
            raise HTTPException(
                status_code=400,
                detail=f"You can have at most {max_loans} open loans from this library"
            )

        min_rating = rules.get("min_borrower_rating")
        if min_rating:
            reputation = self.get_reputation(borrower_id)
            # Borrowers without any ratings yet are given the benefit of the doubt
            if reputation and reputation.get("total_ratings"):
                if float(reputation.get("average_rating") or 0) < float(min_rating):
                    raise HTTPException(
                        status_code=403,
                        detail="Your borrower rating is below this library's minimum"
                    )

    def check_availability(self, game_id: str) -> AvailabilityResponse:
        """Copies owned minus loans that still hold a copy"""
        try:
            game = self.get_game(game_id)
            copies_owned = game.get("copies_owned") or 1
            loans_result = self.supabase.table(LOANS_TABLE)\
                .select("id")\
                .eq("game_id", game_id)\
                .in_("status", OPEN_STATUSES)\
                .execute()
            active_loans = len(loans_result.data or [])
            copies_available = max(0, copies_owned - active_loans)
            return AvailabilityResponse(
                available=copies_available > 0,
                copies_owned=copies_owned,
                active_loans=active_loans,
                copies_available=copies_available,
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def request_loan(self, game: dict, borrower_id: str, notes: Optional[str] = None) -> LoanResponse:
        try:
            lender_id = self._get_library_owner(game["library_id"])
            if lender_id == borrower_id:
                raise HTTPException(status_code=400, detail="You cannot borrow from your own library")

            self._check_rules(borrower_id, game["library_id"])

            if not self.check_availability(game["id"]).available:
                raise HTTPException(status_code=409, detail="No copies of this game are available right now")

            result = self.supabase.table(LOANS_TABLE).insert({
                "game_id": game["id"],
                "library_id": game["library_id"],
                "borrower_user_id": borrower_id,
                "lender_user_id": lender_id,
                "borrower_notes": notes or None,
                "status": LoanStatus.REQUESTED.value,
                "requested_at": _now().isoformat(),
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create loan request")
            logger.info(f"Loan requested for game {game['id']} by {borrower_id}")
            return LoanResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_loan(self, loan_id: str) -> dict:
        try:
            result = self.supabase.table(LOANS_TABLE)\
                .select("*")\
                .eq("id", loan_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Loan not found")
            return result.data
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _require_lender(self, loan: dict, user_id: str) -> None:
        if loan["lender_user_id"] != user_id:
            raise HTTPException(status_code=403, detail="Only the lender can perform this action")

    def _transition(self, loan_id: str, user_id: str, target: LoanStatus, changes: dict, lender_action: bool = True) -> LoanResponse:
        try:
            loan = self.get_loan(loan_id)
            if lender_action:
                self._require_lender(loan, user_id)
            elif loan["borrower_user_id"] != user_id:
                raise HTTPException(status_code=403, detail="Only the borrower can perform this action")
            assert_transition(loan["status"], target)

            result = self.supabase.table(LOANS_TABLE)\
                .update({"status": target.value, **changes})\
                .eq("id", loan_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to update loan")
            logger.info(f"Loan {loan_id}: {loan['status']} -> {target.value}")
            return LoanResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def approve_loan(self, loan_id: str, user_id: str, approval: LoanApprove) -> LoanResponse:
        now = _now()
        due_date = approval.due_date
        if due_date is None:
            loan = self.get_loan(loan_id)
            days = self._lending_rules(loan["library_id"]).get("default_loan_duration_days")
            if days:
                due_date = now + timedelta(days=days)
        return self._transition(loan_id, user_id, LoanStatus.APPROVED, {
            "approved_at": now.isoformat(),
            "due_date": due_date.isoformat() if due_date else None,
            "lender_notes": approval.notes or None,
            "copy_id": approval.copy_id or None,
            "condition_out": approval.condition_out or None,
        })

    def decline_loan(self, loan_id: str, user_id: str, notes: Optional[str] = None) -> LoanResponse:
        return self._transition(loan_id, user_id, LoanStatus.DECLINED, {"lender_notes": notes or None})

    def mark_picked_up(self, loan_id: str, user_id: str) -> LoanResponse:
        return self._transition(loan_id, user_id, LoanStatus.ACTIVE, {"borrowed_at": _now().isoformat()})

    def mark_returned(self, loan_id: str, user_id: str, return_data: LoanReturn) -> LoanResponse:
        loan = self._transition(loan_id, user_id, LoanStatus.RETURNED, {
            "returned_at": _now().isoformat(),
            "condition_in": return_data.condition_in or None,
            "damage_reported": return_data.damage_reported,
        })
        try:
            self._notify_next_waiting(loan.game_id)
        except Exception as e:
            logger.error(f"Failed to advance waitlist for game {loan.game_id}: {e}")
        return loan

    def cancel_loan(self, loan_id: str, user_id: str) -> LoanResponse:
        return self._transition(loan_id, user_id, LoanStatus.CANCELLED, {}, lender_action=False)

    def list_borrowed(self, user_id: str) -> List[LoanResponse]:
        try:
            result = self.supabase.table(LOANS_TABLE)\
                .select("*")\
                .eq("borrower_user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            return [LoanResponse(**loan) for loan in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_lent(self, user_id: str, library_id: Optional[str] = None) -> List[LoanResponse]:
        try:
            query = self.supabase.table(LOANS_TABLE)\
                .select("*")\
                .eq("lender_user_id", user_id)
            if library_id:
                query = query.eq("library_id", library_id)
            result = query.order("created_at", desc=True).execute()
            return [LoanResponse(**loan) for loan in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Waitlist

    def _notify_next_waiting(self, game_id: str) -> Optional[dict]:
        result = self.supabase.table(WAITLIST_TABLE)\
            .select("*")\
            .eq("game_id", game_id)\
            .eq("status", "waiting")\
            .order("created_at")\
            .limit(1)\
            .execute()
        if not result.data:
            return None
        entry = result.data[0]
        self.supabase.table(WAITLIST_TABLE)\
            .update({"status": "notified", "notified_at": _now().isoformat()})\
            .eq("id", entry["id"])\
            .execute()
        logger.info(f"Waitlist entry {entry['id']} notified for game {game_id}")
        return entry

    def list_waitlist(self, game_id: str) -> List[WaitlistEntryResponse]:
        try:
            result = self.supabase.table(WAITLIST_TABLE)\
                .select("*")\
                .eq("game_id", game_id)\
                .eq("status", "waiting")\
                .order("created_at")\
                .execute()
            return [WaitlistEntryResponse(**entry) for entry in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def join_waitlist(self, game_id: str, user_id: str) -> WaitlistEntryResponse:
        try:
            game = self.get_game(game_id)
            existing = self.supabase.table(WAITLIST_TABLE)\
                .select("id")\
                .eq("game_id", game_id)\
                .eq("user_id", user_id)\
                .eq("status", "waiting")\
                .execute()
            if existing.data:
                raise HTTPException(status_code=409, detail="You are already on the waitlist for this game")

            result = self.supabase.table(WAITLIST_TABLE).insert({
                "game_id": game_id,
                "library_id": game["library_id"],
                "user_id": user_id,
                "status": "waiting",
            }).execute()
            return WaitlistEntryResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def leave_waitlist(self, entry_id: str, user_id: str) -> bool:
        try:
            result = self.supabase.table(WAITLIST_TABLE)\
                .select("id, user_id")\
                .eq("id", entry_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Waitlist entry not found")
            if result.data["user_id"] != user_id:
                raise HTTPException(status_code=403, detail="You can only leave your own waitlist entries")
            self.supabase.table(WAITLIST_TABLE).delete().eq("id", entry_id).execute()
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Ratings

    def rate_borrower(self, loan_id: str, user_id: str, rating_data: BorrowerRatingCreate) -> BorrowerRatingResponse:
        try:
            loan = self.get_loan(loan_id)
            self._require_lender(loan, user_id)
            if loan["status"] != LoanStatus.RETURNED.value:
                raise HTTPException(status_code=409, detail="Only returned loans can be rated")

            result = self.supabase.table(RATINGS_TABLE).insert({
                "loan_id": loan_id,
                "rated_user_id": loan["borrower_user_id"],
                "rated_by_user_id": user_id,
                "rating": rating_data.rating,
                "review": rating_data.review or None,
            }).execute()
            return BorrowerRatingResponse(**result.data[0])
        except HTTPException:
            raise
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise HTTPException(status_code=409, detail="This loan has already been rated")
            raise HTTPException(status_code=500, detail=str(e))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
