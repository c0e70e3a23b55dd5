from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime


class PollCreate(BaseModel):
    library_id: str
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    poll_type: Literal["quick", "game_night"] = "quick"
    max_votes_per_user: int = Field(default=1, ge=1, le=10)
    show_results_before_close: bool = False
    voting_ends_at: Optional[datetime] = None
    event_date: Optional[datetime] = None
    event_location: Optional[str] = None
    game_ids: List[str] = Field(..., min_length=2, max_length=20)


class PollResponse(BaseModel):
    id: str
    library_id: str
    title: str
    description: Optional[str] = None
    poll_type: str = "quick"
    status: str
    max_votes_per_user: int = 1
    show_results_before_close: bool = False
    voting_ends_at: Optional[datetime] = None
    event_date: Optional[datetime] = None
    event_location: Optional[str] = None
    share_token: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class VoteCreate(BaseModel):
    option_id: str
    voter_identifier: Optional[str] = Field(default=None, max_length=100)  # guests only
    voter_name: Optional[str] = Field(default=None, max_length=100)


class VoteResponse(BaseModel):
    id: str
    poll_id: str
    option_id: str
    voter_identifier: str
    voter_name: Optional[str] = None


class OptionResult(BaseModel):
    option_id: str
    game_id: str
    title: Optional[str] = None
    display_order: int = 0
    vote_count: int = 0


class PollResults(BaseModel):
    poll_id: str
    status: str
    total_votes: int
    options: List[OptionResult]
    winner: Optional[OptionResult] = None
