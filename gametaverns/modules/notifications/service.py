from fastapi import HTTPException
from supabase import Client
from gametaverns.modules.notifications.discord_client import DiscordClient, build_embed
from gametaverns.modules.notifications.models import PRIVATE_EVENTS
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, supabase: Client, discord: Optional[DiscordClient] = None):
        self.supabase = supabase
        self.discord = discord or DiscordClient()

    def _library_settings(self, library_id: str) -> dict:
        result = self.supabase.table("library_settings")\
            .select("discord_webhook_url, discord_notifications")\
            .eq("library_id", library_id)\
            .maybe_single()\
            .execute()
        return (result.data if result else None) or {}

    def _library_owner(self, library_id: str) -> Optional[str]:
        result = self.supabase.table("libraries")\
            .select("owner_id")\
            .eq("id", library_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            return None
        return result.data.get("owner_id")

    def _discord_user_id(self, user_id: str) -> Optional[str]:
        result = self.supabase.table("user_profiles")\
            .select("discord_user_id")\
            .eq("user_id", user_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            return None
        return result.data.get("discord_user_id")

    async def send_user_dm(self, user_id: str, embed: Dict[str, Any]) -> Dict[str, Any]:
        """DM a platform user through the bot, if they linked a Discord account."""
        discord_user_id = self._discord_user_id(user_id)
        if not discord_user_id:
            logger.info(f"User {user_id} has no linked Discord account")
            return {"success": True, "skipped": True, "reason": "User has not linked Discord"}
        return await self.discord.send_dm(discord_user_id, embed)

    async def notify_library(self, library_id: str, event_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
        owner_id = self._library_owner(library_id)
        if not owner_id:
            raise HTTPException(status_code=404, detail="Library not found")
        library_settings = self._library_settings(library_id)

        toggles = library_settings.get("discord_notifications") or {}
        if toggles.get(event_type) is False:
            logger.info(f"Notification type {event_type} is disabled for library {library_id}")
            return {"success": True, "skipped": True, "reason": "Notification type disabled"}

        embed = build_embed(event_type, data)

        if event_type in PRIVATE_EVENTS:
            result = await self.send_user_dm(owner_id, embed)
            if result.get("success") and not result.get("skipped"):
                result["method"] = "dm"
            return result

        webhook_url = library_settings.get("discord_webhook_url")
        if not webhook_url:
            return {"success": True, "skipped": True, "reason": "No webhook configured"}
        return await self.discord.send_webhook(webhook_url, embed)

    async def notify_library_quietly(self, library_id: str, event_type: str, data: Dict[str, Any]) -> None:
        """Background-task variant: delivery problems are logged, never raised."""
        try:
            result = await self.notify_library(library_id, event_type, data)
            if not result.get("success"):
                logger.warning(f"Discord {event_type} notification failed: {result.get('error')}")
        except Exception as e:
            logger.error(f"Discord {event_type} notification error: {e}")

    async def send_user_dm_quietly(self, user_id: str, embed: Dict[str, Any]) -> None:
        try:
            await self.send_user_dm(user_id, embed)
        except Exception as e:
            logger.error(f"Discord DM to user {user_id} failed: {e}")
