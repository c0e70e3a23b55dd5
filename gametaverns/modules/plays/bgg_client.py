"""
BoardGameGeek XML API 2 client for play history.

BGG pages /plays 100 at a time and declares the overall total on the root
element. It also blocks traffic that looks automated, so the client rotates
through a few User-Agent strings and restarts from page one with the next one
when a request is refused.
"""

import asyncio
import logging
import xml.etree.ElementTree as ET
from typing import Awaitable, Callable, List, Optional, Tuple

import httpx

from gametaverns.config import settings
from gametaverns.modules.plays.schemas import BggGameRef, BggPlay, BggPlayer

logger = logging.getLogger(__name__)

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
    "BoardGameGeek-API-Client/1.0 (+https://gametaverns.com)",
]

MAX_ACCEPTED_RETRIES = 5
USER_AGENT_SWITCH_DELAY_SEC = 1.0


class BggError(Exception):
    """BGG answered with an error for the current request."""


class BggBlockedError(BggError):
    """Every User-Agent was refused; the operator has to supply a session cookie."""


def _flag(element: ET.Element, name: str) -> bool:
    return element.get(name) == "1"


def _int_or_none(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_player(element: ET.Element) -> BggPlayer:
    raw_name = (element.get("name") or "").strip()
    raw_username = (element.get("username") or "").strip()
    return BggPlayer(
        name=raw_name or raw_username or "Unknown",
        username=raw_username,
        userid=element.get("userid"),
        startposition=element.get("startposition"),
        color=element.get("color"),
        score=element.get("score"),
        new=_flag(element, "new"),
        rating=element.get("rating"),
        win=_flag(element, "win"),
    )


def parse_plays_xml(xml_text: str) -> Tuple[int, List[BggPlay]]:
    """Parse one /plays page. Returns (declared total, plays on this page)."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise BggError(f"Malformed BGG response: {e}")

    if root.tag in ("error", "errors"):
        message = root.findtext(".//message")
        raise BggError(message or "BGG API error")

    total = _int_or_none(root.get("total")) or 0
    plays: List[BggPlay] = []
    for play_el in root.iter("play"):
        item = play_el.find("item")
        if item is None:
            continue
        comments = play_el.findtext("comments")
        plays.append(BggPlay(
            id=play_el.get("id", ""),
            date=play_el.get("date", ""),
            quantity=_int_or_none(play_el.get("quantity")) or 1,
            length=_int_or_none(play_el.get("length")),
            location=play_el.get("location") or None,
            incomplete=_flag(play_el, "incomplete"),
            nowinstats=_flag(play_el, "nowinstats"),
            comments=comments if comments else None,
            game=BggGameRef(objectid=item.get("objectid", ""), name=item.get("name", "")),
            players=[_parse_player(p) for p in play_el.iter("player")],
        ))
    return total, plays


class BggClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        session_cookie: Optional[str] = None,
        page_delay: Optional[float] = None,
        accepted_retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.base_url = (base_url or settings.bgg_base_url).rstrip("/")
        self.session_cookie = session_cookie if session_cookie is not None else settings.bgg_session_cookie
        self.page_delay = settings.bgg_page_delay_seconds if page_delay is None else page_delay
        self.accepted_retry_delay = (
            settings.bgg_accepted_retry_seconds if accepted_retry_delay is None else accepted_retry_delay
        )
        self.transport = transport
        self.sleep = sleep

    def _headers(self, user_agent: str) -> dict:
        # BGG is less likely to block requests that resemble a browser navigation
        headers = {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
            "Referer": "https://boardgamegeek.com/",
        }
        if self.session_cookie:
            headers["Cookie"] = self.session_cookie
        return headers

    async def _fetch_page(self, client: httpx.AsyncClient, username: str, page: int, user_agent: str) -> str:
        url = f"{self.base_url}/plays"
        params = {"username": username, "page": page}
        for _ in range(MAX_ACCEPTED_RETRIES + 1):
            response = await client.get(url, params=params, headers=self._headers(user_agent))
            if response.status_code == 202:
                logger.info(f"BGG returned 202 for page {page}, waiting...")
                await self.sleep(self.accepted_retry_delay)
                continue
            if response.status_code in (401, 403):
                raise BggError(f"BGG returned {response.status_code}: {response.text[:200] or 'Access denied'}")
            if response.status_code >= 400:
                snippet = response.text[:300]
                raise BggError(f"BGG API error: {response.status_code}" + (f" ({snippet})" if snippet else ""))
            return response.text
        raise BggError(f"BGG kept answering 202 for page {page}")

    async def _fetch_all_with(self, client: httpx.AsyncClient, username: str, user_agent: str) -> List[BggPlay]:
        all_plays: List[BggPlay] = []
        page = 1
        while True:
            logger.info(f"Fetching BGG plays page {page} for {username} (UA: {user_agent[:30]}...)")
            xml_text = await self._fetch_page(client, username, page, user_agent)
            total, plays = parse_plays_xml(xml_text)
            all_plays.extend(plays)
            logger.info(f"Page {page}: got {len(plays)} plays, total so far: {len(all_plays)}/{total}")
            if len(all_plays) >= total or not plays:
                return all_plays
            page += 1
            await self.sleep(self.page_delay)

    async def fetch_all_plays(self, username: str) -> List[BggPlay]:
        """Fetch a user's full play history, rotating User-Agents if BGG blocks us."""
        last_error: Optional[Exception] = None
        async with httpx.AsyncClient(
            timeout=settings.bgg_timeout_seconds,
            transport=self.transport,
            follow_redirects=True,
        ) as client:
            for user_agent in USER_AGENTS:
                try:
                    return await self._fetch_all_with(client, username, user_agent)
                except (BggError, httpx.HTTPError) as e:
                    last_error = e
                    logger.warning(f"User-Agent failed: {e}, trying next...")
                    await self.sleep(USER_AGENT_SWITCH_DELAY_SEC)

        reason = str(last_error) if last_error else "unknown error"
        if self.session_cookie:
            raise BggBlockedError(
                "BGG is blocking server requests. Your BGG_SESSION_COOKIE may be expired or invalid "
                f"(BGG returned: {reason}). Log in to BGG in a browser and update the cookie value."
            )
        raise BggBlockedError(
            f"BGG is blocking server requests ({reason}). To fix this, set BGG_SESSION_COOKIE "
            "(from your browser) in the server environment and restart the service."
        )
