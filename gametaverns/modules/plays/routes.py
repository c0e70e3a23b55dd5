from fastapi import APIRouter, Depends, HTTPException
from gametaverns.database.supabase_client import get_service_supabase
from gametaverns.modules.plays.bgg_client import BggClient, BggError
from gametaverns.modules.plays.schemas import PlayImportRequest, SessionCreate, SessionResponse
from gametaverns.modules.plays.service import PlayImportService, PlaySessionService
from gametaverns.core.dependencies import get_current_user_id, check_library_member, get_library
from supabase import Client
from typing import List, Dict
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plays", tags=["plays"])
functions_router = APIRouter(tags=["functions"])


def get_bgg_client() -> BggClient:
    return BggClient()


def get_play_import_service(
    supabase: Client = Depends(get_service_supabase),
    bgg_client: BggClient = Depends(get_bgg_client),
) -> PlayImportService:
    return PlayImportService(supabase, bgg_client)


def get_play_session_service(supabase: Client = Depends(get_service_supabase)) -> PlaySessionService:
    return PlaySessionService(supabase)


@functions_router.post("/bgg-play-import")
async def bgg_play_import(
    request: PlayImportRequest,
    user_data: Dict = Depends(get_current_user_id),
    service: PlayImportService = Depends(get_play_import_service),
    supabase: Client = Depends(get_service_supabase),
):
    """Import a BoardGameGeek user's play history into a library (owner or member only)"""
    if not request.bgg_username or not request.bgg_username.strip():
        raise HTTPException(status_code=400, detail="BGG username is required")
    if not request.library_id:
        raise HTTPException(status_code=400, detail="Library ID is required")

    library = get_library(request.library_id, supabase)
    try:
        check_library_member(request.library_id, user_data, supabase, library=library)
    except HTTPException as e:
        if e.status_code == 403:
            raise HTTPException(status_code=403, detail="You must be a library member to import plays")
        raise

    try:
        result = await service.import_plays(
            request.bgg_username.strip(),
            request.library_id,
            update_existing=request.update_existing is True,
        )
    except BggError as e:
        logger.error(f"BGG play import failed for {request.bgg_username}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"success": True, **result.model_dump()}


@router.post("", response_model=SessionResponse, status_code=201)
async def log_play(
    session_data: SessionCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: PlaySessionService = Depends(get_play_session_service),
    supabase: Client = Depends(get_service_supabase),
):
    """Log a play session for a game (library members only)"""
    game = service.get_game(session_data.game_id)
    check_library_member(game["library_id"], user_data, supabase)
    return service.create_session(session_data)


@router.get("/games/{game_id}", response_model=List[SessionResponse])
async def list_game_plays(
    game_id: str,
    limit: int = 50,
    offset: int = 0,
    service: PlaySessionService = Depends(get_play_session_service),
):
    """Play history for a game (public, like the library page)"""
    service.get_game(game_id)
    return service.list_sessions(game_id, limit=limit, offset=offset)


@router.delete("/{session_id}", status_code=204)
async def delete_play(
    session_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: PlaySessionService = Depends(get_play_session_service),
    supabase: Client = Depends(get_service_supabase),
):
    """Delete a logged play (library members only)"""
    session = service.get_session(session_id)
    game = service.get_game(session["game_id"])
    check_library_member(game["library_id"], user_data, supabase)
    service.delete_session(session_id)
    return None
