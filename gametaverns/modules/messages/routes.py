from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from gametaverns.database.supabase_client import get_service_supabase
from gametaverns.modules.messages.schemas import (
    InquiryRequest, InquiryResponse, DirectMessageCreate, DirectMessageResponse, UnreadCountResponse
)
from gametaverns.modules.messages.service import MessageService, validate_inquiry, hash_ip, inquiry_embed
from gametaverns.modules.notifications.routes import get_notification_service
from gametaverns.modules.notifications.service import NotificationService
from gametaverns.core.dependencies import get_current_user_id, get_optional_user, get_client_ip
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/messages", tags=["messages"])
functions_router = APIRouter(tags=["functions"])


def get_message_service(supabase: Client = Depends(get_service_supabase)) -> MessageService:
    return MessageService(supabase)


@functions_router.post("/send-message", response_model=InquiryResponse)
async def send_message(
    inquiry: InquiryRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: MessageService = Depends(get_message_service),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Send a buyer inquiry about a for-sale game to its library owner as a direct message"""
    validate_inquiry(inquiry)
    if user_data is None:
        raise HTTPException(status_code=401, detail="Authentication required to send messages")

    game = service.send_inquiry(user_data["id"], hash_ip(get_client_ip(request)), inquiry)
    background_tasks.add_task(
        notifications.send_user_dm_quietly,
        game["owner_id"],
        inquiry_embed(game["title"], inquiry.sender_name.strip()),
    )
    return InquiryResponse(recipient_id=game["owner_id"])


@router.post("", response_model=DirectMessageResponse, status_code=201)
async def send_direct_message(
    message_data: DirectMessageCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service),
):
    return service.send_message(user_data["id"], message_data.recipient_id, message_data.content)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user_data: Dict = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service),
):
    return UnreadCountResponse(unread=service.unread_count(user_data["id"]))


@router.get("/with/{other_user_id}", response_model=List[DirectMessageResponse])
async def get_conversation(
    other_user_id: str,
    limit: int = 100,
    user_data: Dict = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service),
):
    return service.get_conversation(user_data["id"], other_user_id, limit=limit)


@router.post("/with/{other_user_id}/read")
async def mark_read(
    other_user_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service),
):
    return {"updated": service.mark_read(user_data["id"], other_user_id)}
