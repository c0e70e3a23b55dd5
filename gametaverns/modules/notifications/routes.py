from fastapi import APIRouter, Depends, HTTPException
from gametaverns.database.supabase_client import get_service_supabase
from gametaverns.modules.notifications.discord_client import DiscordClient
from gametaverns.modules.notifications.push_service import PushService
from gametaverns.modules.notifications.service import NotificationService
from gametaverns.modules.notifications.schemas import (
    DiscordNotifyRequest, DiscordDmRequest, DiscordThreadRequest, PushRequest, PushResult
)
from gametaverns.core.dependencies import require_service_role
from supabase import Client
import json
import logging

logger = logging.getLogger(__name__)

functions_router = APIRouter(tags=["functions"])


def get_discord_client() -> DiscordClient:
    return DiscordClient()


def get_notification_service(
    supabase: Client = Depends(get_service_supabase),
    discord: DiscordClient = Depends(get_discord_client),
) -> NotificationService:
    return NotificationService(supabase, discord)


def get_push_service(supabase: Client = Depends(get_service_supabase)) -> PushService:
    return PushService(supabase)


def _raise_on_failure(result: dict) -> dict:
    if not result.get("success"):
        raise HTTPException(status_code=500, detail=result.get("error") or "Discord request failed")
    return result


@functions_router.post("/discord-notify", dependencies=[Depends(require_service_role)])
async def discord_notify(
    request: DiscordNotifyRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """Library event notification: webhook for public events, owner DM for private ones"""
    result = await service.notify_library(request.library_id, request.event_type, request.data)
    return _raise_on_failure(result)


@functions_router.post("/discord-send-dm", dependencies=[Depends(require_service_role)])
async def discord_send_dm(
    request: DiscordDmRequest,
    service: NotificationService = Depends(get_notification_service),
):
    result = await service.send_user_dm(request.user_id, request.embed)
    return _raise_on_failure(result)


@functions_router.post("/discord-lock-thread", dependencies=[Depends(require_service_role)])
async def discord_lock_thread(
    request: DiscordThreadRequest,
    discord: DiscordClient = Depends(get_discord_client),
):
    """Lock a resolved feedback thread, or post a staff note into it"""
    if request.action == "post_note":
        result = await discord.post_to_thread(
            request.thread_id, request.author_name or "Staff", request.content or "", request.note_type
        )
    else:
        result = await discord.lock_thread(request.thread_id)
    _raise_on_failure(result)
    return {"success": True}


@functions_router.post("/send-push-notification", response_model=PushResult, dependencies=[Depends(require_service_role)])
async def send_push_notification(
    request: PushRequest,
    push_service: PushService = Depends(get_push_service),
):
    if not push_service.configured:
        logger.error("FIREBASE_SERVICE_ACCOUNT_JSON not configured")
        raise HTTPException(status_code=503, detail="Push notifications not configured")

    if request.type == "INSERT" and request.record:
        record = request.record
        metadata = record.get("metadata") or {}
        if isinstance(metadata, str):
            metadata = json.loads(metadata)
        user_id = record.get("user_id")
        title = record.get("title")
        body = record.get("body")
        data = {"notification_type": record.get("notification_type") or "general", **metadata}
        notification_type = None
    else:
        user_id = request.user_id
        title = request.title
        body = request.body
        data = request.data or {}
        notification_type = request.notification_type

    if not user_id or not title:
        raise HTTPException(status_code=400, detail="user_id and title are required")

    return await push_service.send(user_id, title, body, data, notification_type)
