from supabase import Client
from postgrest.exceptions import APIError
from gametaverns.modules.polls.models import POLLS_TABLE, OPTIONS_TABLE, VOTES_TABLE, POLL_OPEN, POLL_CLOSED
from gametaverns.modules.polls.schemas import PollCreate, PollResponse, VoteResponse, OptionResult, PollResults
from typing import List, Optional
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _parse_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class PollService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_poll(self, poll_id: str) -> dict:
        try:
            result = self.supabase.table(POLLS_TABLE)\
                .select("*")\
                .eq("id", poll_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Poll not found")
            return result.data
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_polls(self, library_id: str, status: Optional[str] = None) -> List[PollResponse]:
        try:
            query = self.supabase.table(POLLS_TABLE)\
                .select("*")\
                .eq("library_id", library_id)
            if status:
                query = query.eq("status", status)
            result = query.order("created_at", desc=True).execute()
            return [PollResponse(**p) for p in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_poll(self, poll_data: PollCreate, user_id: str) -> PollResponse:
        try:
            game_ids = list(dict.fromkeys(poll_data.game_ids))
            if len(game_ids) < 2:
                raise HTTPException(status_code=400, detail="A poll needs at least two different games")

            games = self.supabase.table("games")\
                .select("id")\
                .eq("library_id", poll_data.library_id)\
                .in_("id", game_ids)\
                .execute()
            if len(games.data or []) != len(game_ids):
                raise HTTPException(status_code=400, detail="All games must belong to this library")

            poll_row = poll_data.model_dump(mode="json", exclude={"game_ids"})
            result = self.supabase.table(POLLS_TABLE).insert({
                **poll_row,
                "status": POLL_OPEN,
                "created_by": user_id,
            }).execute()
            poll = result.data[0]

            self.supabase.table(OPTIONS_TABLE).insert([
                {"poll_id": poll["id"], "game_id": game_id, "display_order": i}
                for i, game_id in enumerate(game_ids)
            ]).execute()
            logger.info(f"Poll {poll['id']} created in library {poll_data.library_id} with {len(game_ids)} options")
            return PollResponse(**poll)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def vote(self, poll_id: str, option_id: str, voter_identifier: str, voter_name: Optional[str] = None) -> VoteResponse:
        try:
            poll = self.get_poll(poll_id)
            if poll["status"] != POLL_OPEN:
                raise HTTPException(status_code=400, detail="Poll is closed")
            ends_at = _parse_timestamp(poll.get("voting_ends_at"))
            if ends_at and ends_at < datetime.now(timezone.utc):
                raise HTTPException(status_code=400, detail="Voting has ended")

            option = self.supabase.table(OPTIONS_TABLE)\
                .select("id")\
                .eq("id", option_id)\
                .eq("poll_id", poll_id)\
                .execute()
            if not option.data:
                raise HTTPException(status_code=400, detail="Invalid option")

            existing = self.supabase.table(VOTES_TABLE)\
                .select("id, option_id")\
                .eq("poll_id", poll_id)\
                .eq("voter_identifier", voter_identifier)\
                .execute().data or []
            if any(v["option_id"] == option_id for v in existing):
                raise HTTPException(status_code=409, detail="You already voted for this option")
            max_votes = poll.get("max_votes_per_user") or 1
            if len(existing) >= max_votes:
                raise HTTPException(status_code=400, detail=f"Maximum {max_votes} vote(s) allowed")

            result = self.supabase.table(VOTES_TABLE).insert({
                "poll_id": poll_id,
                "option_id": option_id,
                "voter_identifier": voter_identifier,
                "voter_name": voter_name,
            }).execute()
            return VoteResponse(**result.data[0])
        except HTTPException:
            raise
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise HTTPException(status_code=409, detail="You already voted for this option")
            raise HTTPException(status_code=500, detail=str(e))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def remove_vote(self, poll_id: str, option_id: str, voter_identifier: str) -> bool:
        try:
            poll = self.get_poll(poll_id)
            if poll["status"] != POLL_OPEN:
                raise HTTPException(status_code=400, detail="Poll is closed")
            self.supabase.table(VOTES_TABLE)\
                .delete()\
                .eq("poll_id", poll_id)\
                .eq("option_id", option_id)\
                .eq("voter_identifier", voter_identifier)\
                .execute()
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_results(self, poll_id: str) -> PollResults:
        try:
            poll = self.get_poll(poll_id)
            options = self.supabase.table(OPTIONS_TABLE)\
                .select("id, game_id, display_order")\
                .eq("poll_id", poll_id)\
                .order("display_order")\
                .execute().data or []
            votes = self.supabase.table(VOTES_TABLE)\
                .select("option_id")\
                .eq("poll_id", poll_id)\
                .execute().data or []

            titles = {}
            if options:
                games = self.supabase.table("games")\
                    .select("id, title")\
                    .in_("id", [o["game_id"] for o in options])\
                    .execute()
                titles = {g["id"]: g["title"] for g in games.data or []}

            counts = {}
            for vote in votes:
                counts[vote["option_id"]] = counts.get(vote["option_id"], 0) + 1

            results = [
                OptionResult(
                    option_id=o["id"],
                    game_id=o["game_id"],
                    title=titles.get(o["game_id"]),
                    display_order=o.get("display_order") or 0,
                    vote_count=counts.get(o["id"], 0),
                )
                for o in options
            ]
            winner = max(results, key=lambda r: r.vote_count) if votes else None
            return PollResults(
                poll_id=poll_id,
                status=poll["status"],
                total_votes=len(votes),
                options=results,
                winner=winner,
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def close_poll(self, poll_id: str) -> PollResults:
        try:
            poll = self.get_poll(poll_id)
            if poll["status"] == POLL_CLOSED:
                raise HTTPException(status_code=409, detail="Poll is already closed")
            self.supabase.table(POLLS_TABLE)\
                .update({"status": POLL_CLOSED})\
                .eq("id", poll_id)\
                .execute()
            logger.info(f"Poll {poll_id} closed")
            return self.get_results(poll_id)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_poll(self, poll_id: str) -> bool:
        try:
            self.supabase.table(VOTES_TABLE).delete().eq("poll_id", poll_id).execute()
            self.supabase.table(OPTIONS_TABLE).delete().eq("poll_id", poll_id).execute()
            result = self.supabase.table(POLLS_TABLE).delete().eq("id", poll_id).execute()
            return len(result.data or []) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
