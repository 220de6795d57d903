"""Outbound ports: interfaces for the two platform clients."""

from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Protocol, runtime_checkable


@dataclass
class DeliveryResult:
    """Outcome of one outbound relay call."""

    success: bool
    status: Optional[int] = None
    error: Optional[str] = None


@dataclass
class ProfileLookup:
    """Outcome of a user profile lookup. ``found`` is False on any failure."""

    found: bool
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "ProfileLookup":
        return cls(found=False, error=error)


@dataclass
class ContentResult:
    """Upstream content fetch. ``body`` is set only when ``ok``.

    ``close()`` releases whatever the fetch holds open and is safe to call
    more than once, whether or not ``body`` was ever iterated.
    """

    status: int
    content_type: Optional[str] = None
    body: Optional[AsyncIterator[bytes]] = field(default=None, repr=False)
    closer: Optional[Callable[[], Awaitable[None]]] = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    async def close(self) -> None:
        closer, self.closer = self.closer, None
        if closer is not None:
            await closer()


@runtime_checkable
class SlackPort(Protocol):
    """Slack Web API + incoming webhooks."""

    @property
    def is_configured(self) -> bool: ...

    async def get_profile(self, user_id: str) -> ProfileLookup: ...

    async def post_webhook(self, webhook_url: str, payload: Dict[str, Any]) -> DeliveryResult: ...

    async def fetch_content(self, url: str) -> ContentResult: ...


@runtime_checkable
class LinePort(Protocol):
    """LINE Messaging API."""

    @property
    def is_configured(self) -> bool: ...

    async def get_profile(
        self, user_id: str, source_type: str = "user", source_id: Optional[str] = None
    ) -> ProfileLookup: ...

    async def push(self, to: str, messages: List[Dict[str, Any]]) -> DeliveryResult: ...

    async def fetch_content(self, message_id: str) -> ContentResult: ...
