from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from gametaverns.database.supabase_client import get_service_supabase
from gametaverns.modules.lending.schemas import (
    LoanRequest, LoanApprove, LoanDecline, LoanReturn, LoanResponse, AvailabilityResponse,
    WaitlistJoin, WaitlistEntryResponse, BorrowerRatingCreate, BorrowerRatingResponse
)
from gametaverns.modules.lending.service import LendingService
from gametaverns.modules.notifications.models import NotificationEvent
from gametaverns.modules.notifications.routes import get_notification_service
from gametaverns.modules.notifications.service import NotificationService
from gametaverns.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/loans", tags=["lending"])


def get_lending_service(supabase: Client = Depends(get_service_supabase)) -> LendingService:
    return LendingService(supabase)


def _display_name(user_data: dict) -> str:
    metadata = user_data.get("user_metadata") or {}
    return metadata.get("display_name") or metadata.get("full_name") or (user_data.get("email") or "").split("@")[0] or "Someone"


@router.post("", response_model=LoanResponse, status_code=201)
async def request_loan(
    loan_request: LoanRequest,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user_id),
    service: LendingService = Depends(get_lending_service),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Ask the library owner to lend a game"""
    game = service.get_game(loan_request.game_id)
    loan = service.request_loan(game, user_data["id"], loan_request.notes)
    background_tasks.add_task(
        notifications.notify_library_quietly,
        game["library_id"],
        NotificationEvent.LOAN_REQUESTED.value,
        {
            "game_title": game.get("title") or "a game",
            "image_url": game.get("image_url"),
            "borrower_name": loan_request.borrower_name or _display_name(user_data),
            "notes": loan_request.notes,
        },
    )
    return loan


@router.get("/borrowed", response_model=List[LoanResponse])
async def list_borrowed(
    user_data: Dict = Depends(get_current_user_id),
    service: LendingService = Depends(get_lending_service),
):
    return service.list_borrowed(user_data["id"])


@router.get("/lent", response_model=List[LoanResponse])
async def list_lent(
    library_id: Optional[str] = None,
    user_data: Dict = Depends(get_current_user_id),
    service: LendingService = Depends(get_lending_service),
):
    return service.list_lent(user_data["id"], library_id)


@router.get("/availability/{game_id}", response_model=AvailabilityResponse)
async def check_availability(
    game_id: str,
    service: LendingService = Depends(get_lending_service),
):
    return service.check_availability(game_id)


@router.get("/waitlist/{game_id}", response_model=List[WaitlistEntryResponse])
async def list_waitlist(
    game_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: LendingService = Depends(get_lending_service),
):
    return service.list_waitlist(game_id)


@router.post("/waitlist", response_model=WaitlistEntryResponse, status_code=201)
async def join_waitlist(
    waitlist_data: WaitlistJoin,
    user_data: Dict = Depends(get_current_user_id),
    service: LendingService = Depends(get_lending_service),
):
    return service.join_waitlist(waitlist_data.game_id, user_data["id"])


@router.delete("/waitlist/{entry_id}", status_code=204)
async def leave_waitlist(
    entry_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: LendingService = Depends(get_lending_service),
):
    service.leave_waitlist(entry_id, user_data["id"])
    return None


@router.get("/reputation/{user_id}")
async def get_reputation(
    user_id: str,
    service: LendingService = Depends(get_lending_service),
):
    return service.get_reputation(user_id) or {
        "user_id": user_id, "total_ratings": 0, "average_rating": 0, "positive_ratings": 0
    }


@router.get("/{loan_id}", response_model=LoanResponse)
async def get_loan(
    loan_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: LendingService = Depends(get_lending_service),
):
    loan = service.get_loan(loan_id)
    if user_data["id"] not in (loan["borrower_user_id"], loan["lender_user_id"]):
        raise HTTPException(status_code=404, detail="Loan not found")
    return LoanResponse(**loan)


@router.post("/{loan_id}/approve", response_model=LoanResponse)
async def approve_loan(
    loan_id: str,
    approval: LoanApprove,
    user_data: Dict = Depends(get_current_user_id),
    service: LendingService = Depends(get_lending_service),
):
    return service.approve_loan(loan_id, user_data["id"], approval)


@router.post("/{loan_id}/decline", response_model=LoanResponse)
async def decline_loan(
    loan_id: str,
    decline: LoanDecline,
    user_data: Dict = Depends(get_current_user_id),
    service: LendingService = Depends(get_lending_service),
):
    return service.decline_loan(loan_id, user_data["id"], decline.notes)


@router.post("/{loan_id}/pickup", response_model=LoanResponse)
async def mark_picked_up(
    loan_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: LendingService = Depends(get_lending_service),
):
    return service.mark_picked_up(loan_id, user_data["id"])


@router.post("/{loan_id}/return", response_model=LoanResponse)
async def mark_returned(
    loan_id: str,
    return_data: LoanReturn,
    user_data: Dict = Depends(get_current_user_id),
    service: LendingService = Depends(get_lending_service),
):
    return service.mark_returned(loan_id, user_data["id"], return_data)


@router.post("/{loan_id}/cancel", response_model=LoanResponse)
async def cancel_loan(
    loan_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: LendingService = Depends(get_lending_service),
):
    return service.cancel_loan(loan_id, user_data["id"])


@router.post("/{loan_id}/rating", response_model=BorrowerRatingResponse, status_code=201)
async def rate_borrower(
    loan_id: str,
    rating_data: BorrowerRatingCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: LendingService = Depends(get_lending_service),
):
    return service.rate_borrower(loan_id, user_data["id"], rating_data)
