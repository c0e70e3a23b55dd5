"""
Firebase Cloud Messaging (HTTP v1) delivery to a user's registered devices.
"""

import json
import logging
import time
from typing import Any, Dict, Optional

import httpx
import jwt
from fastapi import HTTPException
from supabase import Client

from gametaverns.config import settings
from gametaverns.modules.notifications.models import PUSH_TOKENS_TABLE

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
FCM_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"
FCM_SEND_URL = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"
ANDROID_CHANNEL_ID = "gametaverns_notifications"


def stringify_data(data: Dict[str, Any]) -> Dict[str, str]:
    """FCM only accepts string values in the data payload."""
    return {k: v if isinstance(v, str) else json.dumps(v) for k, v in data.items()}


class PushService:
    def __init__(
        self,
        supabase: Client,
        service_account_json: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.supabase = supabase
        raw = service_account_json if service_account_json is not None else settings.firebase_service_account_json
        self.service_account: Optional[Dict[str, Any]] = json.loads(raw) if raw else None
        self.transport = transport

    @property
    def configured(self) -> bool:
        return self.service_account is not None

    def build_assertion(self, now: Optional[int] = None) -> str:
        """Signed RS256 service-account JWT for the OAuth2 jwt-bearer grant."""
        now = int(time.time()) if now is None else now
        account = self.service_account
        payload = {
            "iss": account["client_email"],
            "sub": account["client_email"],
            "aud": account.get("token_uri") or GOOGLE_TOKEN_URL,
            "iat": now,
            "exp": now + 3600,
            "scope": FCM_SCOPE,
        }
        return jwt.encode(payload, account["private_key"], algorithm="RS256")

    async def _access_token(self, client: httpx.AsyncClient) -> str:
        token_url = self.service_account.get("token_uri") or GOOGLE_TOKEN_URL
        response = await client.post(token_url, data={
            "grant_type": "urn:ietf:params:oauth:grant-type:jwt-bearer",
            "assertion": self.build_assertion(),
        })
        if response.status_code >= 400:
            raise HTTPException(status_code=500, detail=f"Failed to get Firebase access token: {response.text}")
        return response.json()["access_token"]

    def _message(self, token: str, title: str, body: Optional[str], data: Dict[str, str]) -> dict:
        notification = {"title": title}
        if body:
            notification["body"] = body
        return {
            "message": {
                "token": token,
                "notification": notification,
                "data": data,
                "android": {
                    "priority": "high",
                    "notification": {
                        "sound": "default",
                        "default_sound": True,
                        "channel_id": ANDROID_CHANNEL_ID,
                    },
                },
                "apns": {
                    "payload": {
                        "aps": {"sound": "default", "badge": 1, "content-available": 1},
                    },
                },
            }
        }

    def _remove_token(self, token: str) -> None:
        self.supabase.table(PUSH_TOKENS_TABLE)\
            .delete()\
            .eq("token", token)\
            .execute()
        logger.info(f"Removed stale push token: {token[:10]}...")

    async def send(
        self,
        user_id: str,
        title: str,
        body: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        notification_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Send one notification to every device the user has registered."""
        if not self.configured:
            raise HTTPException(status_code=503, detail="Push notifications not configured")

        payload_data = dict(data or {})
        if notification_type:
            payload_data["notification_type"] = notification_type

        try:
            tokens_result = self.supabase.table(PUSH_TOKENS_TABLE)\
                .select("token, platform")\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching push tokens: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch push tokens")

        tokens = tokens_result.data or []
        if not tokens:
            logger.info(f"No push tokens found for user {user_id}")
            return {"sent": 0, "failed": 0, "total": 0, "message": "No push tokens registered"}

        string_data = stringify_data(payload_data)
        fcm_url = FCM_SEND_URL.format(project_id=self.service_account["project_id"])
        sent = 0
        failed = 0

        async with httpx.AsyncClient(timeout=15.0, transport=self.transport) as client:
            access_token = await self._access_token(client)
            headers = {"Authorization": f"Bearer {access_token}"}
            for row in tokens:
                token = row["token"]
                try:
                    response = await client.post(
                        fcm_url, headers=headers, json=self._message(token, title, body, string_data)
                    )
                except httpx.HTTPError as e:
                    logger.error(f"Error sending to token {token[:10]}...: {e}")
                    failed += 1
                    continue

                if response.status_code < 400:
                    sent += 1
                    continue

                failed += 1
                logger.error(f"FCM send failed for token {token[:10]}...: {response.text}")
                if response.status_code == 404 or "UNREGISTERED" in response.text:
                    try:
                        self._remove_token(token)
                    except Exception as e:
                        logger.error(f"Failed to remove stale token: {e}")

        return {"sent": sent, "failed": failed, "total": len(tokens)}
