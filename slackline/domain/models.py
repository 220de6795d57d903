"""Domain data models: pure Python dataclasses."""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

SLACK = "slack"
LINE = "line"


# ── Channel endpoints ───────────────────────────────────────


@dataclass(frozen=True)
class TeamChannel:
    """A Slack channel. Matched inbound by (team_id, channel_id)."""

    name: str
    team_id: str
    channel_id: str
    webhook_url: str
    token: Optional[str] = None  # legacy outgoing-webhook token, unused

    @property
    def match_key(self) -> Tuple[str, str]:
        return (self.team_id, self.channel_id)


@dataclass(frozen=True)
class BotChannel:
    """A LINE user, group or room. Matched inbound by its LINE id."""

    name: str
    id: str

    @property
    def match_key(self) -> str:
        return self.id


ChannelEndpoint = Union[TeamChannel, BotChannel]


@dataclass(frozen=True)
class Bridge:
    """Pairing of a Slack channel name and a LINE channel name."""

    slack: str
    line: str

    def other_side(self, name: str) -> Optional[str]:
        if name == self.slack:
            return self.line
        if name == self.line:
            return self.slack
        return None


# ── Message content (tagged union) ──────────────────────────


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Attachment:
    """A Slack file attached to a message."""

    url_private: str
    mime_type: str
    thumb_url: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image")


@dataclass(frozen=True)
class Image:
    """Image hosted by the source platform (a LINE message id)."""

    remote_ref: str


@dataclass(frozen=True)
class Sticker:
    package_id: str
    sticker_id: str


@dataclass(frozen=True)
class Other:
    """Any content kind we do not transform; rendered as ``<kind>``."""

    kind: str
    content_id: Optional[str] = None


Content = Union[Text, Image, Sticker, Other]


# ── Events ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Sender:
    """Who sent an inbound event. ``id`` is None when the platform hides it."""

    id: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


@dataclass(frozen=True)
class InboundEvent:
    """A verified, decoded inbound message, platform-agnostic."""

    platform: str
    source_key: Union[str, Tuple[str, str]]
    sender: Sender
    content: Content
    attachments: Tuple[Attachment, ...] = field(default_factory=tuple)
    source_type: str = "user"  # LINE: user | group | room
    is_automated: bool = False


@dataclass(frozen=True)
class QueuedItem:
    """Raw LINE webhook delivery awaiting verification by the worker."""

    signature: str
    body: bytes
    host: str
