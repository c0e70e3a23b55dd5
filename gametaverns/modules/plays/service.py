from supabase import Client
from gametaverns.modules.plays.bgg_client import BggClient
from gametaverns.modules.plays.models import (
    SESSIONS_TABLE, SESSION_PLAYERS_TABLE, IMPORT_SOURCE_BGG, IMPORT_SOURCE_MANUAL, DEFAULT_PLAY_TIME
)
from gametaverns.modules.plays.schemas import (
    BggPlay, BggPlayer, ImportResult, SessionCreate, SessionResponse
)
from typing import Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def _parse_score(score: Optional[str]) -> Optional[int]:
    if not score:
        return None
    try:
        return int(float(score))
    except ValueError:
        return None


def _player_rows(session_id: str, players: List[BggPlayer], first_play_allowed: bool = True) -> List[dict]:
    return [
        {
            "session_id": session_id,
            "player_name": p.name,
            "score": _parse_score(p.score),
            "is_winner": p.win,
            "is_first_play": p.new and first_play_allowed,
            "color": p.color or None,
        }
        for p in players
    ]


class GameMatcher:
    """Match a BGG play to a library game: exact BGG id first, then case-insensitive title."""

    def __init__(self, games: List[dict]):
        self.by_bgg_id: Dict[str, dict] = {}
        self.by_title: Dict[str, dict] = {}
        for game in games:
            if game.get("bgg_id"):
                self.by_bgg_id[str(game["bgg_id"])] = game
            if game.get("title"):
                self.by_title.setdefault(game["title"].lower(), game)

    def match(self, play: BggPlay) -> Optional[dict]:
        game = self.by_bgg_id.get(play.game.objectid)
        if game is None:
            game = self.by_title.get(play.game.name.lower())
        return game


class PlayImportService:
    def __init__(self, supabase: Client, bgg_client: BggClient):
        self.supabase = supabase
        self.bgg_client = bgg_client

    def _library_games(self, library_id: str) -> List[dict]:
        result = self.supabase.table("games")\
            .select("id, title, bgg_id")\
            .eq("library_id", library_id)\
            .execute()
        return result.data or []

    def _existing_sessions(self, game_ids: List[str]) -> Dict[str, str]:
        """bgg_play_id -> session id, limited to this library's games."""
        if not game_ids:
            return {}
        result = self.supabase.table(SESSIONS_TABLE)\
            .select("id, bgg_play_id")\
            .in_("game_id", game_ids)\
            .not_.is_("bgg_play_id", "null")\
            .execute()
        return {s["bgg_play_id"]: s["id"] for s in (result.data or [])}

    def _update_play(self, session_id: str, play: BggPlay) -> None:
        self.supabase.table(SESSIONS_TABLE)\
            .update({
                "duration_minutes": play.length,
                "notes": play.comments,
                "location": play.location,
            })\
            .eq("id", session_id)\
            .execute()

        # Players are replaced wholesale
        self.supabase.table(SESSION_PLAYERS_TABLE)\
            .delete()\
            .eq("session_id", session_id)\
            .execute()
        if play.players:
            self.supabase.table(SESSION_PLAYERS_TABLE)\
                .insert(_player_rows(session_id, play.players))\
                .execute()

    def _insert_session(self, game_id: str, play: BggPlay, bgg_play_id: str, notes: Optional[str], first_play_allowed: bool) -> str:
        result = self.supabase.table(SESSIONS_TABLE).insert({
            "game_id": game_id,
            "played_at": f"{play.date}{DEFAULT_PLAY_TIME}",
            "duration_minutes": play.length,
            "notes": notes,
            "location": play.location,
            "bgg_play_id": bgg_play_id,
            "import_source": IMPORT_SOURCE_BGG,
        }).execute()
        if not result.data:
            raise Exception("Session insert returned no row")
        session_id = result.data[0]["id"]

        if play.players:
            try:
                self.supabase.table(SESSION_PLAYERS_TABLE)\
                    .insert(_player_rows(session_id, play.players, first_play_allowed))\
                    .execute()
            except Exception as e:
                # The session itself is kept; a play without players is still a logged play
                logger.error(f"Player insert failed for session {session_id}: {e}")
        return session_id

    def _insert_play(self, game_id: str, play: BggPlay, existing: Dict[str, str]) -> int:
        """Insert a play and its same-day repeats. Returns the number of sessions created."""
        session_id = self._insert_session(game_id, play, play.id, play.comments, first_play_allowed=True)
        existing[play.id] = session_id
        created = 1

        for n in range(2, play.quantity + 1):
            extra_id = f"{play.id}_{n}"
            if extra_id in existing:
                continue
            suffix = f"play {n}/{play.quantity}"
            notes = f"{play.comments} ({suffix})" if play.comments else suffix.capitalize()
            try:
                existing[extra_id] = self._insert_session(game_id, play, extra_id, notes, first_play_allowed=False)
                created += 1
            except Exception as e:
                logger.error(f"Failed to insert repeat {extra_id}: {e}")
        return created

    async def import_plays(self, bgg_username: str, library_id: str, update_existing: bool = False) -> ImportResult:
        """Fetch a BGG user's plays and log them against this library's games."""
        logger.info(f"Importing BGG plays for {bgg_username} into library {library_id}, update_existing={update_existing}")
        plays = await self.bgg_client.fetch_all_plays(bgg_username)
        logger.info(f"Fetched {len(plays)} plays from BGG")

        games = self._library_games(library_id)
        matcher = GameMatcher(games)
        existing = self._existing_sessions([g["id"] for g in games])
        result = ImportResult()

        for play in plays:
            existing_session_id = existing.get(play.id)
            if existing_session_id and not update_existing:
                result.skipped += 1
                result.details.skipped_duplicates.append(play.label)
                continue

            game = matcher.match(play)
            if game is None:
                result.add_unmatched(play.game.name)
                continue

            if existing_session_id:
                try:
                    self._update_play(existing_session_id, play)
                    result.updated += 1
                    result.details.updated_plays.append(play.label)
                except Exception as e:
                    logger.error(f"Error updating play {play.id}: {e}")
                    result.failed += 1
                    result.errors.append(f"Failed to update {play.label}: {e}")
                continue

            try:
                result.imported += self._insert_play(game["id"], play, existing)
                result.details.imported_plays.append(play.label)
            except Exception as e:
                logger.error(f"Error importing play {play.id}: {e}")
                result.failed += 1
                result.errors.append(f"Failed to import {play.label}: {e}")

        logger.info(
            f"Import complete: {result.imported} imported, {result.updated} updated, "
            f"{result.skipped} skipped, {result.failed} failed"
        )
        return result


class PlaySessionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_game(self, game_id: str) -> dict:
        try:
            result = self.supabase.table("games")\
                .select("id, title, library_id")\
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

    def _attach_players(self, sessions: List[dict]) -> List[SessionResponse]:
        if not sessions:
            return []
        players_result = self.supabase.table(SESSION_PLAYERS_TABLE)\
            .select("*")\
            .in_("session_id", [s["id"] for s in sessions])\
            .execute()
        by_session: Dict[str, List[dict]] = {}
        for p in players_result.data or []:
            by_session.setdefault(p["session_id"], []).append(p)
        return [SessionResponse(**s, players=by_session.get(s["id"], [])) for s in sessions]

    def create_session(self, session_data: SessionCreate) -> SessionResponse:
        """Log a play by hand"""
        try:
            result = self.supabase.table(SESSIONS_TABLE).insert({
                "game_id": session_data.game_id,
                "played_at": session_data.played_at.isoformat(),
                "duration_minutes": session_data.duration_minutes,
                "notes": session_data.notes,
                "location": session_data.location,
                "import_source": IMPORT_SOURCE_MANUAL,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to log play")
            session = result.data[0]

            if session_data.players:
                self.supabase.table(SESSION_PLAYERS_TABLE).insert([
                    {"session_id": session["id"], **p.model_dump()} for p in session_data.players
                ]).execute()
            return self._attach_players([session])[0]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_sessions(self, game_id: str, limit: int = 50, offset: int = 0) -> List[SessionResponse]:
        """Sessions for a game, newest first, with their players"""
        try:
            result = self.supabase.table(SESSIONS_TABLE)\
                .select("*")\
                .eq("game_id", game_id)\
                .order("played_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return self._attach_players(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_session(self, session_id: str) -> dict:
        try:
            result = self.supabase.table(SESSIONS_TABLE)\
                .select("*")\
                .eq("id", session_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Play session not found")
            return result.data
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_session(self, session_id: str) -> bool:
        try:
            self.supabase.table(SESSION_PLAYERS_TABLE)\
                .delete()\
                .eq("session_id", session_id)\
                .execute()
            result = self.supabase.table(SESSIONS_TABLE)\
                .delete()\
                .eq("id", session_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
