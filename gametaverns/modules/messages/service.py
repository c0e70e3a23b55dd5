from supabase import Client
from gametaverns.config import settings
from gametaverns.modules.messages.models import (
    MESSAGES_TABLE, MAX_SENDER_NAME_LENGTH, MAX_MESSAGE_LENGTH, URL_PATTERN, UUID_PATTERN
)
from gametaverns.modules.messages.schemas import InquiryRequest, DirectMessageResponse
from typing import Any, Dict, List
from datetime import datetime, timedelta, timezone
from fastapi import HTTPException
import hashlib
import logging

logger = logging.getLogger(__name__)


def hash_ip(ip: str) -> str:
    """Salted SHA-256 so raw addresses never reach the database."""
    return hashlib.sha256(f"{settings.ip_hash_salt}{ip}".encode("utf-8")).hexdigest()


def validate_inquiry(inquiry: InquiryRequest) -> None:
    if not inquiry.game_id or not inquiry.sender_name or not inquiry.message:
        raise HTTPException(status_code=400, detail="All fields are required")
    if not inquiry.sender_name.strip() or len(inquiry.sender_name) > MAX_SENDER_NAME_LENGTH:
        raise HTTPException(status_code=400, detail="Name must be between 1 and 100 characters")
    if not inquiry.message.strip() or len(inquiry.message) > MAX_MESSAGE_LENGTH:
        raise HTTPException(status_code=400, detail="Message must be between 1 and 2000 characters")
    if URL_PATTERN.search(inquiry.message):
        raise HTTPException(status_code=400, detail="Links are not allowed in messages")
    if not UUID_PATTERN.match(inquiry.game_id):
        raise HTTPException(status_code=400, detail="Invalid game ID")


def inquiry_embed(game_title: str, sender_name: str) -> Dict[str, Any]:
    return {
        "title": "📬 New Game Inquiry",
        "description": f"Someone is interested in **{game_title}**!",
        "color": 0x22C55E,
        "fields": [
            {"name": "From", "value": sender_name, "inline": True},
            {"name": "Game", "value": game_title, "inline": True},
        ],
        "footer": {"text": "Check your Direct Messages to view and reply"},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class MessageService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def count_recent_from(self, ip_hash: str) -> int:
        """Inquiries sent from this hashed IP inside the rate window"""
        since = datetime.now(timezone.utc) - timedelta(minutes=settings.inquiry_rate_window_minutes)
        result = self.supabase.table(MESSAGES_TABLE)\
            .select("id", count="exact")\
            .eq("sender_ip_hash", ip_hash)\
            .gte("created_at", since.isoformat())\
            .execute()
        return result.count if result.count is not None else len(result.data or [])

    def check_rate_limit(self, ip_hash: str) -> None:
        try:
            recent = self.count_recent_from(ip_hash)
        except Exception as e:
            logger.error(f"Rate limit lookup failed: {e}")
            raise HTTPException(status_code=500, detail="An unexpected error occurred")
        if recent >= settings.inquiry_rate_limit:
            logger.warning(f"Inquiry rate limit hit for ip hash {ip_hash[:12]}...")
            raise HTTPException(status_code=429, detail="Too many messages. Please try again later.")

    def get_inquiry_target(self, game_id: str) -> Dict[str, Any]:
        """The game being asked about plus the id of the library owner who receives the inquiry"""
        game_result = self.supabase.table("games")\
            .select("id, title, library_id, is_for_sale")\
            .eq("id", game_id)\
            .maybe_single()\
            .execute()
        if not game_result or not game_result.data:
            raise HTTPException(status_code=404, detail="Game not found")
        game = game_result.data
        if not game.get("is_for_sale"):
            raise HTTPException(status_code=400, detail="This game is not available for sale")

        owner_result = self.supabase.table("libraries")\
            .select("owner_id")\
            .eq("id", game["library_id"])\
            .maybe_single()\
            .execute()
        if not owner_result or not owner_result.data or not owner_result.data.get("owner_id"):
            raise HTTPException(status_code=400, detail="Could not determine game owner")
        return {**game, "owner_id": owner_result.data["owner_id"]}

    def send_inquiry(self, sender_id: str, ip_hash: str, inquiry: InquiryRequest) -> Dict[str, Any]:
        try:
            self.check_rate_limit(ip_hash)
            game = self.get_inquiry_target(inquiry.game_id)
            if game["owner_id"] == sender_id:
                raise HTTPException(status_code=400, detail="You cannot send an inquiry for your own game")

            self.supabase.table(MESSAGES_TABLE).insert({
                "sender_id": sender_id,
                "recipient_id": game["owner_id"],
                "content": f"Re: {game['title']} - {inquiry.message.strip()}",
                "sender_ip_hash": ip_hash,
            }).execute()
            logger.info(f"Game inquiry DM sent for \"{game['title']}\" by user {sender_id} to owner {game['owner_id']}")
            return game
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Insert error: {e}")
            raise HTTPException(status_code=500, detail="Failed to send message. Please try again.")

    # Direct messages

    def send_message(self, sender_id: str, recipient_id: str, content: str) -> DirectMessageResponse:
        if sender_id == recipient_id:
            raise HTTPException(status_code=400, detail="You cannot message yourself")
        try:
            result = self.supabase.table(MESSAGES_TABLE).insert({
                "sender_id": sender_id,
                "recipient_id": recipient_id,
                "content": content.strip(),
            }).execute()
            return DirectMessageResponse(**result.data[0])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_conversation(self, user_id: str, other_user_id: str, limit: int = 100) -> List[DirectMessageResponse]:
        try:
            sent = self.supabase.table(MESSAGES_TABLE)\
                .select("*")\
                .eq("sender_id", user_id)\
                .eq("recipient_id", other_user_id)\
                .execute()
            received = self.supabase.table(MESSAGES_TABLE)\
                .select("*")\
                .eq("sender_id", other_user_id)\
                .eq("recipient_id", user_id)\
                .execute()
            messages = sorted((sent.data or []) + (received.data or []), key=lambda m: m.get("created_at") or "")
            return [DirectMessageResponse(**m) for m in messages[-limit:]]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def mark_read(self, user_id: str, other_user_id: str) -> int:
        """Mark everything the other user sent me as read. Returns how many rows changed."""
        try:
            result = self.supabase.table(MESSAGES_TABLE)\
                .update({"read_at": datetime.now(timezone.utc).isoformat()})\
                .eq("recipient_id", user_id)\
                .eq("sender_id", other_user_id)\
                .is_("read_at", "null")\
                .execute()
            return len(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def unread_count(self, user_id: str) -> int:
        try:
            result = self.supabase.table(MESSAGES_TABLE)\
                .select("id", count="exact")\
                .eq("recipient_id", user_id)\
                .is_("read_at", "null")\
                .execute()
            return result.count if result.count is not None else len(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
