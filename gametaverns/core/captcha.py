import logging
from typing import Optional

import httpx

from gametaverns.config import settings

logger = logging.getLogger(__name__)

TURNSTILE_VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"


async def verify_turnstile(
    token: Optional[str],
    remote_ip: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """Verify a Cloudflare Turnstile token. Always passes when no secret is configured (local dev)."""
    if not settings.turnstile_secret_key:
        return True
    if not token:
        return False
    form = {"secret": settings.turnstile_secret_key, "response": token}
    if remote_ip:
        form["remoteip"] = remote_ip
    try:
        async with httpx.AsyncClient(timeout=10.0, transport=transport) as client:
            response = await client.post(TURNSTILE_VERIFY_URL, data=form)
        if response.status_code != 200:
            logger.warning(f"Turnstile verify returned {response.status_code}")
            return False
        return bool(response.json().get("success"))
    except httpx.HTTPError as e:
        logger.error(f"Turnstile verify failed: {e}")
        return False
