"""Slack client using aiohttp."""

import asyncio
from typing import Any, Dict

import aiohttp

from slackline.adapters.content import stream_content
from slackline.ports.outbound import ContentResult, DeliveryResult, ProfileLookup

SLACK_API_BASE = "https://slack.com/api"


class SlackClient:
    """Async Slack client: profile lookup, incoming-webhook delivery, private files."""

    def __init__(self, bot_token: str = "", api_base: str = SLACK_API_BASE):
        self._bot_token = bot_token
        self._api_base = api_base.rstrip("/")

    @property
    def is_configured(self) -> bool:
        return bool(self._bot_token)

    @property
    def _headers(self) -> Dict[str, str]:
        if not self._bot_token:
            return {}
        return {"Authorization": f"Bearer {self._bot_token}"}

    async def get_profile(self, user_id: str) -> ProfileLookup:
        url = f"{self._api_base}/users.profile.get"
        try:
            async with aiohttp.ClientSession(headers=self._headers) as session:
                async with session.get(url, params={"user": user_id}) as resp:
                    data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            return ProfileLookup.failed(str(e))

        if not isinstance(data, dict) or not data.get("ok"):
            error = data.get("error") if isinstance(data, dict) else None
            return ProfileLookup.failed(error or "profile lookup failed")

        profile = data.get("profile") or {}
        name = profile.get("display_name") or profile.get("real_name")
        if not name:
            return ProfileLookup.failed("profile has no name")
        return ProfileLookup(found=True, display_name=name, avatar_url=profile.get("image_512"))

    async def post_webhook(self, webhook_url: str, payload: Dict[str, Any]) -> DeliveryResult:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(webhook_url, json=payload) as resp:
                    body = await resp.text()
                    if 200 <= resp.status < 300:
                        return DeliveryResult(success=True, status=resp.status)
                    return DeliveryResult(success=False, status=resp.status, error=body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            return DeliveryResult(success=False, error=str(e))

    async def fetch_content(self, url: str) -> ContentResult:
        return await stream_content(url, self._headers)
