from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from gametaverns.database.supabase_client import get_service_supabase
from gametaverns.modules.polls.models import POLL_CLOSED, POLL_URL_TEMPLATE
from gametaverns.modules.polls.schemas import PollCreate, PollResponse, VoteCreate, VoteResponse, PollResults
from gametaverns.modules.polls.service import PollService
from gametaverns.modules.notifications.models import NotificationEvent
from gametaverns.modules.notifications.routes import get_notification_service
from gametaverns.modules.notifications.service import NotificationService
from gametaverns.core.dependencies import get_current_user_id, get_optional_user, check_library_owner
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/polls", tags=["polls"])


def get_poll_service(supabase: Client = Depends(get_service_supabase)) -> PollService:
    return PollService(supabase)


def _voter_identifier(vote: VoteCreate, user_data: Optional[Dict]) -> str:
    if user_data:
        return user_data["id"]
    if not vote.voter_identifier:
        raise HTTPException(status_code=400, detail="voter_identifier is required for guest votes")
    return vote.voter_identifier


@router.get("", response_model=List[PollResponse])
async def list_polls(
    library_id: str,
    status: Optional[str] = None,
    service: PollService = Depends(get_poll_service),
):
    return service.list_polls(library_id, status)


@router.post("", response_model=PollResponse, status_code=201)
async def create_poll(
    poll_data: PollCreate,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user_id),
    service: PollService = Depends(get_poll_service),
    notifications: NotificationService = Depends(get_notification_service),
    supabase: Client = Depends(get_service_supabase),
):
    """Create a poll over two or more of the library's games (library owner only)"""
    library = check_library_owner(poll_data.library_id, user_data, supabase)
    poll = service.create_poll(poll_data, user_data["id"])
    background_tasks.add_task(
        notifications.notify_library_quietly,
        poll.library_id,
        NotificationEvent.POLL_CREATED.value,
        {
            "poll_title": poll.title,
            "poll_type": poll.poll_type,
            "game_count": len(set(poll_data.game_ids)),
            "poll_url": POLL_URL_TEMPLATE.format(slug=library.get("slug"), token=poll.share_token or poll.id),
        },
    )
    return poll


@router.get("/{poll_id}", response_model=PollResponse)
async def get_poll(
    poll_id: str,
    service: PollService = Depends(get_poll_service),
):
    return PollResponse(**service.get_poll(poll_id))


@router.post("/{poll_id}/votes", response_model=VoteResponse, status_code=201)
async def vote(
    poll_id: str,
    vote_data: VoteCreate,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: PollService = Depends(get_poll_service),
):
    """Vote as a signed-in user or as a guest with a client generated identifier"""
    return service.vote(poll_id, vote_data.option_id, _voter_identifier(vote_data, user_data), vote_data.voter_name)


@router.delete("/{poll_id}/votes/{option_id}", status_code=204)
async def remove_vote(
    poll_id: str,
    option_id: str,
    voter_identifier: Optional[str] = None,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: PollService = Depends(get_poll_service),
):
    identifier = user_data["id"] if user_data else voter_identifier
    if not identifier:
        raise HTTPException(status_code=400, detail="voter_identifier is required for guest votes")
    service.remove_vote(poll_id, option_id, identifier)
    return None


@router.get("/{poll_id}/results", response_model=PollResults)
async def get_results(
    poll_id: str,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: PollService = Depends(get_poll_service),
    supabase: Client = Depends(get_service_supabase),
):
    """Vote counts per option; hidden from non-owners until close unless the poll allows it"""
    poll = service.get_poll(poll_id)
    if poll["status"] != POLL_CLOSED and not poll.get("show_results_before_close"):
        if user_data is None:
            raise HTTPException(status_code=403, detail="Results are available once the poll closes")
        check_library_owner(poll["library_id"], user_data, supabase)
    return service.get_results(poll_id)


@router.post("/{poll_id}/close", response_model=PollResults)
async def close_poll(
    poll_id: str,
    background_tasks: BackgroundTasks,
    notify: bool = True,
    user_data: Dict = Depends(get_current_user_id),
    service: PollService = Depends(get_poll_service),
    notifications: NotificationService = Depends(get_notification_service),
    supabase: Client = Depends(get_service_supabase),
):
    poll = service.get_poll(poll_id)
    check_library_owner(poll["library_id"], user_data, supabase)
    results = service.close_poll(poll_id)
    if notify and results.winner:
        background_tasks.add_task(
            notifications.notify_library_quietly,
            poll["library_id"],
            NotificationEvent.POLL_CLOSED.value,
            {
                "poll_title": poll["title"],
                "winner_title": results.winner.title,
                "total_votes": results.total_votes,
            },
        )
    return results


@router.delete("/{poll_id}", status_code=204)
async def delete_poll(
    poll_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: PollService = Depends(get_poll_service),
    supabase: Client = Depends(get_service_supabase),
):
    poll = service.get_poll(poll_id)
    check_library_owner(poll["library_id"], user_data, supabase)
    service.delete_poll(poll_id)
    return None
