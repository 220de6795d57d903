"""Domain layer: pure Python, no framework dependencies."""

from slackline.domain.models import (
    Attachment,
    BotChannel,
    Bridge,
    Image,
    InboundEvent,
    Other,
    QueuedItem,
    Sender,
    Sticker,
    TeamChannel,
    Text,
)
from slackline.domain.decode import PayloadError, decode_line_payload, decode_slack_payload
from slackline.domain.directory import BridgeDirectory, DirectorySnapshot
from slackline.domain.guard import GuardVerdict, check_slack_request, verify_line_signature
from slackline.domain.routing import ProxyUrlBuilder, RelayEngine

__all__ = [
    "Attachment",
    "BotChannel",
    "Bridge",
    "Image",
    "InboundEvent",
    "Other",
    "QueuedItem",
    "Sender",
    "Sticker",
    "TeamChannel",
    "Text",
    "PayloadError",
    "decode_line_payload",
    "decode_slack_payload",
    "BridgeDirectory",
    "DirectorySnapshot",
    "GuardVerdict",
    "check_slack_request",
    "verify_line_signature",
    "ProxyUrlBuilder",
    "RelayEngine",
]
