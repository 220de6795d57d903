"""LINE Messaging API client using aiohttp."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from slackline.adapters.content import stream_content
from slackline.ports.outbound import ContentResult, DeliveryResult, ProfileLookup

logger = logging.getLogger(__name__)

LINE_API_BASE = "https://api.line.me/v2/bot"
LINE_DATA_API_BASE = "https://api-data.line.me/v2/bot"
MAX_MESSAGES_PER_PUSH = 5


class LineClient:
    """Async LINE client: push messages, profile lookup, message content."""

    def __init__(
        self,
        access_token: str = "",
        api_base: str = LINE_API_BASE,
        data_api_base: str = LINE_DATA_API_BASE,
    ):
        self._access_token = access_token
        self._api_base = api_base.rstrip("/")
        self._data_api_base = data_api_base.rstrip("/")

    @property
    def is_configured(self) -> bool:
        return bool(self._access_token)

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token}"}

    def _profile_url(self, user_id: str, source_type: str, source_id: Optional[str]) -> str:
        if source_type == "group" and source_id:
            return f"{self._api_base}/group/{source_id}/member/{user_id}"
        if source_type == "room" and source_id:
            return f"{self._api_base}/room/{source_id}/member/{user_id}"
        return f"{self._api_base}/profile/{user_id}"

    async def get_profile(
        self, user_id: str, source_type: str = "user", source_id: Optional[str] = None
    ) -> ProfileLookup:
        url = self._profile_url(user_id, source_type, source_id)
        try:
            async with aiohttp.ClientSession(headers=self._headers) as session:
                async with session.get(url) as resp:
                    if resp.status != 200:
                        return ProfileLookup.failed(f"HTTP {resp.status}")
                    data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            return ProfileLookup.failed(str(e))

        name = data.get("displayName") if isinstance(data, dict) else None
        if not name:
            return ProfileLookup.failed("profile has no displayName")
        return ProfileLookup(found=True, display_name=name, avatar_url=data.get("pictureUrl"))

    async def _push_once(
        self, session: aiohttp.ClientSession, to: str, messages: List[Dict[str, Any]]
    ) -> DeliveryResult:
        url = f"{self._api_base}/message/push"
        async with session.post(url, json={"to": to, "messages": messages}) as resp:
            body = await resp.text()
            logger.info("LINE API result [%s]: %s", resp.status, body)
            if resp.status == 200:
                return DeliveryResult(success=True, status=resp.status)
            return DeliveryResult(success=False, status=resp.status, error=body)

    async def push(self, to: str, messages: List[Dict[str, Any]]) -> DeliveryResult:
        """Push ``messages`` in order, split into batches LINE accepts."""
        if not messages:
            return DeliveryResult(success=True)
        result = DeliveryResult(success=True)
        try:
            async with aiohttp.ClientSession(headers=self._headers) as session:
                for i in range(0, len(messages), MAX_MESSAGES_PER_PUSH):
                    result = await self._push_once(session, to, messages[i : i + MAX_MESSAGES_PER_PUSH])
                    if not result.success:
                        return result
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            return DeliveryResult(success=False, error=str(e))
        return result

    async def fetch_content(self, message_id: str) -> ContentResult:
        url = f"{self._data_api_base}/message/{message_id}/content"
        return await stream_content(url, self._headers)
