"""
Thin Discord REST client: webhooks, bot DMs and forum-thread housekeeping.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from gametaverns.config import settings
from gametaverns.modules.notifications.models import EMBED_COLORS, DEFAULT_EMBED_COLOR

logger = logging.getLogger(__name__)

# Discord JSON error code: "Cannot send messages to this user"
CANNOT_MESSAGE_USER = 50007


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_embed(event_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Build the Discord embed for a library notification event."""
    embed: Dict[str, Any] = {
        "color": EMBED_COLORS.get(event_type, DEFAULT_EMBED_COLOR),
        "timestamp": _now_iso(),
    }
    fields = []

    if event_type == "game_added":
        embed["title"] = "🎲 New Game Added!"
        embed["description"] = f"**{data.get('title')}** has been added to the library."
        if data.get("player_count"):
            fields.append({"name": "Players", "value": str(data["player_count"]), "inline": True})
        if data.get("play_time"):
            fields.append({"name": "Play Time", "value": str(data["play_time"]), "inline": True})
        if data.get("game_url"):
            embed["url"] = data["game_url"]
    elif event_type == "wishlist_vote":
        embed["title"] = "❤️ Wishlist Vote"
        embed["description"] = f"Someone wants to play **{data.get('game_title')}**!"
        fields.append({"name": "Total Votes", "value": str(data.get("vote_count") or 1), "inline": True})
        if data.get("voter_name"):
            fields.append({"name": "Voter", "value": str(data["voter_name"]), "inline": True})
    elif event_type == "message_received":
        embed["title"] = "💬 New Message"
        embed["description"] = f"You received a message about **{data.get('game_title')}**."
        if data.get("sender_name"):
            fields.append({"name": "From", "value": str(data["sender_name"]), "inline": True})
        embed["footer"] = {"text": "Check your messages in the dashboard"}
    elif event_type == "poll_created":
        embed["title"] = "🗳️ New Poll Created"
        embed["description"] = f"**{data.get('poll_title')}**"
        if data.get("game_count"):
            fields.append({"name": "Games", "value": f"{data['game_count']} options", "inline": True})
        if data.get("poll_type"):
            label = "Game Night" if data["poll_type"] == "game_night" else "Quick Vote"
            fields.append({"name": "Type", "value": label, "inline": True})
        if data.get("poll_url"):
            embed["url"] = data["poll_url"]
            embed["footer"] = {"text": "Click to vote!"}
    elif event_type == "poll_closed":
        embed["title"] = "📊 Poll Results"
        embed["description"] = f"**{data.get('poll_title')}** has closed!"
        if data.get("winner_title"):
            fields.append({"name": "🏆 Winner", "value": str(data["winner_title"]), "inline": False})
        if data.get("total_votes"):
            fields.append({"name": "Total Votes", "value": str(data["total_votes"]), "inline": True})
    elif event_type == "loan_requested":
        embed["title"] = "📦 Loan Request"
        embed["description"] = f"**{data.get('borrower_name') or 'Someone'}** would like to borrow **{data.get('game_title') or 'a game'}**."
        if data.get("notes"):
            fields.append({"name": "Notes", "value": str(data["notes"])[:1024], "inline": False})
        embed["footer"] = {"text": "Approve or decline it from your lending dashboard"}
    else:
        embed["title"] = "📢 Notification"
        embed["description"] = json.dumps(data)

    if data.get("image_url") and event_type in ("game_added", "wishlist_vote", "loan_requested"):
        embed["thumbnail"] = {"url": data["image_url"]}
    if fields:
        embed["fields"] = fields
    return embed


class DiscordClient:
    def __init__(
        self,
        bot_token: Optional[str] = None,
        api_base: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.bot_token = bot_token if bot_token is not None else settings.discord_bot_token
        self.api_base = (api_base or settings.discord_api_base).rstrip("/")
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=15.0, transport=self.transport)

    def _bot_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bot {self.bot_token}", "Content-Type": "application/json"}

    async def send_webhook(self, webhook_url: str, embed: Dict[str, Any]) -> Dict[str, Any]:
        async with self._client() as client:
            response = await client.post(webhook_url, json={"embeds": [embed]})
        if response.status_code >= 400:
            logger.error(f"Discord webhook error: {response.status_code} {response.text}")
            return {"success": False, "error": "Failed to send Discord notification", "details": response.text}
        return {"success": True, "method": "webhook"}

    async def send_dm(self, discord_user_id: str, embed: Dict[str, Any]) -> Dict[str, Any]:
        """Open (or reuse) the DM channel with a user and post the embed."""
        if not self.bot_token:
            return {"success": True, "skipped": True, "reason": "Discord bot not configured"}
        async with self._client() as client:
            channel_response = await client.post(
                f"{self.api_base}/users/@me/channels",
                headers=self._bot_headers(),
                json={"recipient_id": discord_user_id},
            )
            if channel_response.status_code >= 400:
                logger.error(f"Discord DM channel error: {channel_response.text}")
                if channel_response.status_code == 403:
                    return {"success": True, "skipped": True, "reason": "User has DMs disabled"}
                return {"success": False, "error": "Failed to create DM channel"}

            channel_id = channel_response.json()["id"]
            message_response = await client.post(
                f"{self.api_base}/channels/{channel_id}/messages",
                headers=self._bot_headers(),
                json={"embeds": [embed]},
            )
        if message_response.status_code >= 400:
            logger.error(f"Discord message error: {message_response.text}")
            try:
                code = message_response.json().get("code")
            except ValueError:
                code = None
            if code == CANNOT_MESSAGE_USER:
                return {
                    "success": True,
                    "skipped": True,
                    "reason": f"Cannot send messages to this user (Discord code {CANNOT_MESSAGE_USER})",
                }
            return {"success": False, "error": "Failed to send DM"}
        logger.info(f"DM sent to Discord user {discord_user_id}")
        return {"success": True}

    async def lock_thread(self, thread_id: str) -> Dict[str, Any]:
        """Post a resolved notice, then lock and archive a forum thread. A deleted thread counts as done."""
        if not self.bot_token:
            return {"success": False, "error": "DISCORD_BOT_TOKEN not configured"}
        url = f"{self.api_base}/channels/{thread_id}"
        async with self._client() as client:
            # Auto-archived threads reject new messages
            try:
                await client.patch(url, headers=self._bot_headers(), json={"archived": False})
            except httpx.HTTPError as e:
                logger.warning(f"Unarchive of thread {thread_id} failed: {e}")

            message_response = await client.post(
                f"{url}/messages",
                headers=self._bot_headers(),
                json={"embeds": [{
                    "title": "✅ Resolved",
                    "description": "This feedback item has been marked as resolved. The thread is now locked.",
                    "color": 0x22C55E,
                    "timestamp": _now_iso(),
                }]},
            )
            if message_response.status_code == 404:
                return {"success": True}
            if message_response.status_code >= 400:
                logger.warning(f"Failed to post closing message: {message_response.status_code} {message_response.text}")

            lock_response = await client.patch(
                url, headers=self._bot_headers(), json={"archived": True, "locked": True}
            )
        if lock_response.status_code == 404:
            return {"success": True}
        if lock_response.status_code >= 400:
            logger.error(f"Discord thread lock failed: {lock_response.status_code} {lock_response.text}")
            return {
                "success": False,
                "error": f"Discord API error: {lock_response.status_code} - {lock_response.text}",
            }
        return {"success": True}

    async def post_to_thread(self, thread_id: str, author_name: str, content: str, note_type: str) -> Dict[str, Any]:
        if not self.bot_token:
            return {"success": False, "error": "DISCORD_BOT_TOKEN not configured"}
        url = f"{self.api_base}/channels/{thread_id}"
        is_reply = note_type == "reply"
        embed = {
            "title": "💬 Staff Reply" if is_reply else "📝 Internal Note",
            "description": content[:4000],
            "color": 0x3B82F6 if is_reply else 0x6B7280,
            "footer": {"text": f"By {author_name}"},
            "timestamp": _now_iso(),
        }
        async with self._client() as client:
            try:
                await client.patch(url, headers=self._bot_headers(), json={"archived": False})
            except httpx.HTTPError as e:
                logger.warning(f"Unarchive of thread {thread_id} failed: {e}")
            response = await client.post(f"{url}/messages", headers=self._bot_headers(), json={"embeds": [embed]})
        if response.status_code >= 400:
            logger.error(f"Discord thread message failed: {response.status_code} {response.text}")
            return {"success": False, "error": response.text}
        return {"success": True}
