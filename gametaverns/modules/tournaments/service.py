from supabase import Client
from postgrest.exceptions import APIError
from gametaverns.modules.tournaments import brackets
from gametaverns.modules.tournaments.models import (
    CONFIG_TABLE, PLAYERS_TABLE, MATCHES_TABLE, ELIMINATION_FORMATS, MatchStatus, TournamentFormat
)
from gametaverns.modules.tournaments.schemas import (
    TournamentConfigUpsert, TournamentConfigResponse, PlayerCreate, PlayerResponse, MatchResponse, MatchResult
)
from typing import List, Optional
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TournamentService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # Config

    def get_config(self, event_id: str) -> Optional[TournamentConfigResponse]:
        try:
            result = self.supabase.table(CONFIG_TABLE)\
                .select("*")\
                .eq("event_id", event_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                return None
            return TournamentConfigResponse(**result.data)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _require_config(self, event_id: str) -> TournamentConfigResponse:
        config = self.get_config(event_id)
        if config is None:
            raise HTTPException(status_code=404, detail="Tournament is not configured for this event")
        return config

    def upsert_config(self, event_id: str, config_data: TournamentConfigUpsert) -> TournamentConfigResponse:
        try:
            result = self.supabase.table(CONFIG_TABLE)\
                .upsert({
                    "event_id": event_id,
                    **config_data.model_dump(mode="json"),
                    "updated_at": _now_iso(),
                }, on_conflict="event_id")\
                .execute()
            return TournamentConfigResponse(**result.data[0])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Players

    def list_players(self, event_id: str) -> List[PlayerResponse]:
        try:
            result = self.supabase.table(PLAYERS_TABLE)\
                .select("*")\
                .eq("event_id", event_id)\
                .order("seed")\
                .execute()
            return [PlayerResponse(**p) for p in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def add_player(self, event_id: str, player_data: PlayerCreate) -> PlayerResponse:
        try:
            result = self.supabase.table(PLAYERS_TABLE).insert({
                "event_id": event_id,
                "player_name": player_data.player_name.strip(),
                "player_user_id": player_data.player_user_id,
                "seed": player_data.seed,
            }).execute()
            return PlayerResponse(**result.data[0])
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise HTTPException(status_code=409, detail="A player with that name is already in this tournament")
            raise HTTPException(status_code=500, detail=str(e))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def remove_player(self, event_id: str, player_id: str) -> bool:
        try:
            result = self.supabase.table(PLAYERS_TABLE)\
                .delete()\
                .eq("id", player_id)\
                .eq("event_id", event_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Player not found")
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Matches

    def list_matches(self, event_id: str) -> List[MatchResponse]:
        try:
            result = self.supabase.table(MATCHES_TABLE)\
                .select("*")\
                .eq("event_id", event_id)\
                .order("round_number")\
                .order("match_number")\
                .execute()
            return [MatchResponse(**m) for m in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def generate_bracket(self, event_id: str) -> List[MatchResponse]:
        """Create pairings for the configured format. Swiss adds the next round; other formats start over."""
        try:
            config = self._require_config(event_id)
            players = [p.model_dump() for p in self.list_players(event_id)]
            if len(players) < 2:
                raise HTTPException(status_code=400, detail="At least two players are needed to generate a bracket")

            if config.format == TournamentFormat.SWISS.value:
                round_number = config.current_round + 1
                if config.max_rounds and round_number > config.max_rounds:
                    raise HTTPException(status_code=409, detail="All swiss rounds have been played")
                # Pairings come from standings, so the previous round has to be scored first
                unfinished = self.supabase.table(MATCHES_TABLE)\
                    .select("id")\
                    .eq("event_id", event_id)\
                    .eq("round_number", config.current_round)\
                    .in_("status", [MatchStatus.PENDING.value, MatchStatus.IN_PROGRESS.value])\
                    .execute()
                if unfinished.data:
                    raise HTTPException(status_code=409, detail="Finish the current round first")
                matches = brackets.swiss(event_id, players, round_number)
                self.supabase.table(MATCHES_TABLE)\
                    .delete()\
                    .eq("event_id", event_id)\
                    .eq("round_number", round_number)\
                    .execute()
            else:
                round_number = 1
                if config.format == TournamentFormat.ROUND_ROBIN.value:
                    matches = brackets.round_robin(event_id, players)
                else:
                    matches = brackets.single_elimination(event_id, players)
                self.supabase.table(MATCHES_TABLE)\
                    .delete()\
                    .eq("event_id", event_id)\
                    .execute()
                self.supabase.table(PLAYERS_TABLE)\
                    .update({"is_eliminated": False, "wins": 0, "losses": 0, "draws": 0, "points": 0})\
                    .eq("event_id", event_id)\
                    .execute()

            if matches:
                self.supabase.table(MATCHES_TABLE).insert(matches).execute()
            self.supabase.table(CONFIG_TABLE)\
                .update({"current_round": round_number, "status": "in_progress", "updated_at": _now_iso()})\
                .eq("event_id", event_id)\
                .execute()
            logger.info(f"Generated {len(matches)} {config.format} matches for event {event_id}")
            return self.list_matches(event_id)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _get_match(self, match_id: str) -> dict:
        result = self.supabase.table(MATCHES_TABLE)\
            .select("*")\
            .eq("id", match_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Match not found")
        return result.data

    def _bump_player(self, player_id: str, points: int, **counters) -> None:
        player = self.supabase.table(PLAYERS_TABLE)\
            .select("*")\
            .eq("id", player_id)\
            .maybe_single()\
            .execute()
        if not player or not player.data:
            return
        changes = {"points": (player.data.get("points") or 0) + points}
        for column, delta in counters.items():
            if column == "is_eliminated":
                changes[column] = delta
            else:
                changes[column] = (player.data.get(column) or 0) + delta
        self.supabase.table(PLAYERS_TABLE).update(changes).eq("id", player_id).execute()

    def _advance_winner(self, match: dict, winner_id: str) -> bool:
        """Place the winner in the next round. Returns False when this was the final."""
        next_number, slot = brackets.next_slot(match["match_number"])
        next_match = self.supabase.table(MATCHES_TABLE)\
            .select("id")\
            .eq("event_id", match["event_id"])\
            .eq("round_number", match["round_number"] + 1)\
            .eq("match_number", next_number)\
            .execute()
        if not next_match.data:
            return False
        self.supabase.table(MATCHES_TABLE)\
            .update({slot: winner_id, "updated_at": _now_iso()})\
            .eq("id", next_match.data[0]["id"])\
            .execute()
        return True

    def record_result(self, event_id: str, match_id: str, result: MatchResult) -> MatchResponse:
        try:
            match = self._get_match(match_id)
            if match["event_id"] != event_id:
                raise HTTPException(status_code=404, detail="Match not found")
            if match["status"] in (MatchStatus.COMPLETED.value, MatchStatus.BYE.value):
                raise HTTPException(status_code=409, detail="This match already has a result")
            player1, player2 = match.get("player1_id"), match.get("player2_id")
            if not player1 or not player2:
                raise HTTPException(status_code=409, detail="Both players must be known before recording a result")

            config = self._require_config(event_id)
            elimination = config.format in ELIMINATION_FORMATS

            if result.winner_id is None:
                if not result.is_draw:
                    raise HTTPException(status_code=400, detail="winner_id is required unless the match is a draw")
                if elimination:
                    raise HTTPException(status_code=400, detail="Elimination matches cannot end in a draw")
            elif result.winner_id not in (player1, player2):
                raise HTTPException(status_code=400, detail="Winner must be one of the match players")

            updated = self.supabase.table(MATCHES_TABLE)\
                .update({
                    "winner_id": result.winner_id,
                    "player1_score": result.player1_score,
                    "player2_score": result.player2_score,
                    "status": MatchStatus.COMPLETED.value,
                    "updated_at": _now_iso(),
                })\
                .eq("id", match_id)\
                .execute()

            if result.winner_id is None:
                self._bump_player(player1, config.points_draw, draws=1)
                self._bump_player(player2, config.points_draw, draws=1)
            else:
                loser_id = player2 if result.winner_id == player1 else player1
                self._bump_player(result.winner_id, config.points_win, wins=1)
                if elimination:
                    self._bump_player(loser_id, config.points_loss, losses=1, is_eliminated=True)
                    if not self._advance_winner(match, result.winner_id):
                        self.supabase.table(CONFIG_TABLE)\
                            .update({"status": "completed", "updated_at": _now_iso()})\
                            .eq("event_id", event_id)\
                            .execute()
                        logger.info(f"Tournament for event {event_id} completed")
                else:
                    self._bump_player(loser_id, config.points_loss, losses=1)

            return MatchResponse(**updated.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
