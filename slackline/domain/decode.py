"""Decode raw webhook bodies into typed inbound events.

Required fields are validated once here; anything unexpected maps to an
explicit ``Other``/``Ignored`` result instead of failing deeper in routing.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from slackline.domain.models import (
    LINE,
    SLACK,
    Attachment,
    Content,
    Image,
    InboundEvent,
    Other,
    Sender,
    Sticker,
    Text,
)

logger = logging.getLogger(__name__)

# Slack message subtypes that carry a user-authored message worth relaying
SLACK_RELAYED_SUBTYPES = (None, "", "file_share", "thread_broadcast")
SLACK_BOT_SUBTYPE = "bot_message"

# LINE message kinds whose binary content can be fetched by message id
LINE_CONTENT_KINDS = ("image", "video", "audio", "file")


class PayloadError(Exception):
    """Raised when an inbound body is not a well-formed webhook payload"""
    pass


@dataclass(frozen=True)
class UrlVerification:
    challenge: str


@dataclass(frozen=True)
class Ignored:
    reason: str


SlackPayload = Union[UrlVerification, InboundEvent, Ignored]


def _load_object(body: bytes) -> Dict[str, Any]:
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise PayloadError(f"invalid JSON: {e}")
    if not isinstance(data, dict):
        raise PayloadError("payload is not a JSON object")
    return data


def _require_str(obj: Dict[str, Any], key: str, where: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str) or not value:
        raise PayloadError(f"{where}.{key} is missing")
    return value


# ── Slack ───────────────────────────────────────────────────


def _slack_attachments(files: Any) -> tuple:
    if not isinstance(files, list):
        return ()
    attachments = []
    for f in files:
        if not isinstance(f, dict) or not f.get("url_private"):
            continue
        attachments.append(
            Attachment(
                url_private=f["url_private"],
                mime_type=f.get("mimetype") or "",
                thumb_url=f.get("thumb_360"),
            )
        )
    return tuple(attachments)


def decode_slack_payload(body: bytes) -> SlackPayload:
    data = _load_object(body)
    payload_type = data.get("type")

    if payload_type == "url_verification":
        return UrlVerification(challenge=_require_str(data, "challenge", "payload"))

    if payload_type != "event_callback":
        return Ignored(f"payload type {payload_type!r}")

    event = data.get("event")
    if not isinstance(event, dict):
        raise PayloadError("payload.event is missing")
    if event.get("type") != "message":
        return Ignored(f"event type {event.get('type')!r}")

    subtype = event.get("subtype")
    is_automated = subtype == SLACK_BOT_SUBTYPE or bool(event.get("bot_id"))
    if not is_automated and subtype not in SLACK_RELAYED_SUBTYPES:
        return Ignored(f"message subtype {subtype!r}")

    team_id = data.get("team_id") or event.get("team")
    if not team_id:
        raise PayloadError("payload.team_id is missing")
    channel_id = _require_str(event, "channel", "event")

    text = event.get("text")
    return InboundEvent(
        platform=SLACK,
        source_key=(team_id, channel_id),
        sender=Sender(id=event.get("user")),
        content=Text(text if isinstance(text, str) else ""),
        attachments=_slack_attachments(event.get("files")),
        source_type="channel",
        is_automated=is_automated,
    )


# ── LINE ────────────────────────────────────────────────────


def line_source_id(source: Dict[str, Any]) -> Optional[str]:
    """userId / groupId / roomId depending on the source type."""
    source_type = source.get("type")
    key = {"user": "userId", "group": "groupId", "room": "roomId"}.get(source_type)
    if key is None:
        logger.error("unknown LINE source type: %s", source_type)
        return None
    return source.get(key)


def _line_content(message: Dict[str, Any]) -> Content:
    kind = message.get("type") or "unknown"
    if kind == "text":
        return Text(message.get("text") or "")
    if kind == "image" and message.get("id"):
        return Image(remote_ref=message["id"])
    if kind == "sticker" and message.get("stickerId"):
        return Sticker(
            package_id=str(message.get("packageId", "")),
            sticker_id=str(message["stickerId"]),
        )
    content_id = message.get("id") if kind in LINE_CONTENT_KINDS else None
    return Other(kind=kind, content_id=content_id)


def _line_event(e: Dict[str, Any]) -> Optional[InboundEvent]:
    source = e.get("source")
    if not isinstance(source, dict):
        logger.warning("LINE %s event without source", e.get("type"))
        return None
    source_id = line_source_id(source)

    if e.get("type") != "message":
        logger.info("%s event from %s source: %s", e.get("type"), source.get("type"), source_id)
        return None
    if source_id is None:
        return None

    message = e.get("message")
    if not isinstance(message, dict):
        logger.warning("LINE message event without message body from %s", source_id)
        return None

    return InboundEvent(
        platform=LINE,
        source_key=source_id,
        sender=Sender(id=source.get("userId")),
        content=_line_content(message),
        source_type=source.get("type"),
    )


def decode_line_payload(body: bytes) -> List[InboundEvent]:
    data = _load_object(body)
    events = data.get("events")
    if not isinstance(events, list):
        raise PayloadError("payload.events is missing")

    decoded = []
    for e in events:
        if not isinstance(e, dict):
            logger.warning("skipping non-object LINE event: %r", e)
            continue
        event = _line_event(e)
        if event is not None:
            decoded.append(event)
    return decoded
