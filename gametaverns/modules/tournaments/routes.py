from fastapi import APIRouter, Depends
from gametaverns.database.supabase_client import get_service_supabase
from gametaverns.modules.events.routes import get_registration_service
from gametaverns.modules.events.service import EventRegistrationService
from gametaverns.modules.tournaments.schemas import (
    TournamentConfigUpsert, TournamentConfigResponse, PlayerCreate, PlayerResponse, MatchResponse, MatchResult
)
from gametaverns.modules.tournaments.service import TournamentService
from gametaverns.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/events/{event_id}/tournament", tags=["tournaments"])


def get_tournament_service(supabase: Client = Depends(get_service_supabase)) -> TournamentService:
    return TournamentService(supabase)


def require_organizer(
    event_id: str,
    user_data: Dict = Depends(get_current_user_id),
    events: EventRegistrationService = Depends(get_registration_service),
) -> Dict:
    events.check_event_manager(events.get_event(event_id), user_data)
    return user_data


@router.get("", response_model=Optional[TournamentConfigResponse])
async def get_config(
    event_id: str,
    service: TournamentService = Depends(get_tournament_service),
):
    return service.get_config(event_id)


@router.put("", response_model=TournamentConfigResponse)
async def upsert_config(
    event_id: str,
    config_data: TournamentConfigUpsert,
    organizer: Dict = Depends(require_organizer),
    service: TournamentService = Depends(get_tournament_service),
):
    return service.upsert_config(event_id, config_data)


@router.get("/players", response_model=List[PlayerResponse])
async def list_players(
    event_id: str,
    service: TournamentService = Depends(get_tournament_service),
):
    return service.list_players(event_id)


@router.post("/players", response_model=PlayerResponse, status_code=201)
async def add_player(
    event_id: str,
    player_data: PlayerCreate,
    organizer: Dict = Depends(require_organizer),
    service: TournamentService = Depends(get_tournament_service),
):
    return service.add_player(event_id, player_data)


@router.delete("/players/{player_id}", status_code=204)
async def remove_player(
    event_id: str,
    player_id: str,
    organizer: Dict = Depends(require_organizer),
    service: TournamentService = Depends(get_tournament_service),
):
    service.remove_player(event_id, player_id)
    return None


@router.get("/matches", response_model=List[MatchResponse])
async def list_matches(
    event_id: str,
    service: TournamentService = Depends(get_tournament_service),
):
    return service.list_matches(event_id)


@router.post("/bracket", response_model=List[MatchResponse])
async def generate_bracket(
    event_id: str,
    organizer: Dict = Depends(require_organizer),
    service: TournamentService = Depends(get_tournament_service),
):
    """Generate pairings for the configured format"""
    return service.generate_bracket(event_id)


@router.post("/matches/{match_id}/result", response_model=MatchResponse)
async def record_result(
    event_id: str,
    match_id: str,
    result: MatchResult,
    organizer: Dict = Depends(require_organizer),
    service: TournamentService = Depends(get_tournament_service),
):
    return service.record_result(event_id, match_id, result)
