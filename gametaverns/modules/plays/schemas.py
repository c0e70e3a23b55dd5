from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class BggGameRef(BaseModel):
    objectid: str
    name: str


class BggPlayer(BaseModel):
    name: str
    username: Optional[str] = None
    userid: Optional[str] = None
    startposition: Optional[str] = None
    color: Optional[str] = None
    score: Optional[str] = None
    new: bool = False
    rating: Optional[str] = None
    win: bool = False


class BggPlay(BaseModel):
    id: str
    date: str
    quantity: int = 1
    length: Optional[int] = None
    location: Optional[str] = None
    incomplete: bool = False
    nowinstats: bool = False
    comments: Optional[str] = None
    game: BggGameRef
    players: List[BggPlayer] = []

    @property
    def label(self) -> str:
        return f"{self.game.name} ({self.date})"


class PlayImportRequest(BaseModel):
    # Optional so the handler can answer with the same messages the client expects
    bgg_username: Optional[str] = None
    library_id: Optional[str] = None
    update_existing: Optional[bool] = False


class ImportDetails(BaseModel):
    imported_plays: List[str] = []
    updated_plays: List[str] = []
    skipped_duplicates: List[str] = []
    unmatched_games: List[str] = []


class ImportResult(BaseModel):
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[str] = []
    details: ImportDetails = Field(default_factory=ImportDetails)

    def add_unmatched(self, title: str) -> None:
        self.failed += 1
        if title not in self.details.unmatched_games:
            self.details.unmatched_games.append(title)


class SessionPlayerCreate(BaseModel):
    player_name: str = Field(min_length=1, max_length=100)
    score: Optional[int] = None
    is_winner: bool = False
    is_first_play: bool = False
    color: Optional[str] = None


class SessionCreate(BaseModel):
    game_id: str
    played_at: datetime
    duration_minutes: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    location: Optional[str] = None
    players: List[SessionPlayerCreate] = []


class SessionPlayerResponse(BaseModel):
    id: str
    player_name: str
    score: Optional[int] = None
    is_winner: bool = False
    is_first_play: bool = False
    color: Optional[str] = None


class SessionResponse(BaseModel):
    id: str
    game_id: str
    played_at: datetime
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None
    location: Optional[str] = None
    bgg_play_id: Optional[str] = None
    import_source: Optional[str] = None
    created_at: Optional[datetime] = None
    players: List[SessionPlayerResponse] = []

    class Config:
        from_attributes = True
