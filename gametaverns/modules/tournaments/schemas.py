from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from gametaverns.modules.tournaments.models import TournamentFormat


class TournamentConfigUpsert(BaseModel):
    format: TournamentFormat = TournamentFormat.SINGLE_ELIMINATION
    max_rounds: Optional[int] = Field(default=None, ge=1)
    seed_method: str = "random"
    third_place_match: bool = False
    points_win: int = 3
    points_draw: int = 1
    points_loss: int = 0
    tiebreaker: str = "head_to_head"
    notes: Optional[str] = None


class TournamentConfigResponse(BaseModel):
    id: str
    event_id: str
    format: str
    max_rounds: Optional[int] = None
    current_round: int = 0
    status: str = "setup"
    seed_method: str = "random"
    third_place_match: bool = False
    points_win: int = 3
    points_draw: int = 1
    points_loss: int = 0
    tiebreaker: str = "head_to_head"
    notes: Optional[str] = None


class PlayerCreate(BaseModel):
    player_name: str = Field(..., min_length=1, max_length=100)
    player_user_id: Optional[str] = None
    seed: Optional[int] = Field(default=None, ge=1)


class PlayerResponse(BaseModel):
    id: str
    event_id: str
    player_name: str
    player_user_id: Optional[str] = None
    seed: Optional[int] = None
    is_eliminated: bool = False
    wins: int = 0
    losses: int = 0
    draws: int = 0
    points: int = 0
    tiebreaker_score: float = 0


class MatchResponse(BaseModel):
    id: str
    event_id: str
    round_number: int
    match_number: int
    bracket_position: Optional[str] = None
    player1_id: Optional[str] = None
    player2_id: Optional[str] = None
    winner_id: Optional[str] = None
    player1_score: Optional[int] = None
    player2_score: Optional[int] = None
    status: str
    scheduled_time: Optional[datetime] = None
    table_label: Optional[str] = None
    notes: Optional[str] = None


class MatchResult(BaseModel):
    winner_id: Optional[str] = None
    player1_score: Optional[int] = None
    player2_score: Optional[int] = None
    is_draw: bool = False
