"""Relay engine: turns an inbound event into outbound messages per bridge."""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

from slackline.domain.directory import BridgeDirectory
from slackline.domain.models import (
    LINE,
    SLACK,
    Image,
    InboundEvent,
    Other,
    Sender,
    Sticker,
    Text,
)
from slackline.domain.signing import BytesLike, capability_token
from slackline.ports.outbound import DeliveryResult, LinePort, ProfileLookup, SlackPort

logger = logging.getLogger(__name__)

# <http://example.com|label> or <http://example.com>
SLACK_LINK_PATTERN = re.compile(r"<(?P<url>http[^|>]+)\|?.*?>")

LINE_STICKER_URL = "https://stickershop.line-scdn.net/stickershop/v1/sticker/{sticker_id}/android/sticker.png"
LINE_SENDER_NAME_LIMIT = 20
LINE_TEXT_LIMIT = 5000
LINE_ICON_EMOJI = ":line:"
UNKNOWN_SENDER = "Unknown"


def truncate_text(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def extract_slack_links(text: str) -> List[str]:
    """URLs of every ``<url|label>`` / ``<url>`` link, in order of appearance."""
    return [m.group("url") for m in SLACK_LINK_PATTERN.finditer(text)]


def fallback_sender_name(sender_id: Optional[str], lookup: Optional[ProfileLookup]) -> str:
    if lookup is not None and lookup.found and lookup.display_name:
        return lookup.display_name
    if sender_id:
        return f"{UNKNOWN_SENDER} ({sender_id})"
    return UNKNOWN_SENDER


class ProxyUrlBuilder:
    """Builds capability URLs served by the content proxy routes."""

    def __init__(self, slack_secret: BytesLike, line_secret: BytesLike, public_base_url: str = ""):
        self._slack_secret = slack_secret
        self._line_secret = line_secret
        self._public_base_url = public_base_url.rstrip("/")

    def base_url(self, host: str) -> str:
        return self._public_base_url or f"https://{host}"

    def slack(self, host: str, url: str) -> str:
        token = capability_token(url, self._slack_secret)
        return f"{self.base_url(host)}/proxy/slack/{token}/{quote(url, safe='')}"

    def line(self, host: str, message_id: str) -> str:
        token = capability_token(message_id, self._line_secret)
        return f"{self.base_url(host)}/proxy/line/{token}/{quote(message_id, safe='')}"


@dataclass(frozen=True)
class ResolvedSender:
    name: str
    avatar_url: Optional[str] = None


class RelayEngine:
    """Routes verified events across the configured bridges.

    Profile lookups and deliveries never raise out of here: a failed lookup
    degrades the display name, a failed delivery is logged and the remaining
    bridges are still served.
    """

    def __init__(
        self,
        directory: BridgeDirectory,
        slack: SlackPort,
        line: LinePort,
        proxy_urls: ProxyUrlBuilder,
        ignored_sender_ids: Iterable[str] = (),
    ):
        self.directory = directory
        self.slack = slack
        self.line = line
        self.proxy_urls = proxy_urls
        self.ignored_sender_ids = frozenset(i for i in ignored_sender_ids if i)

    def is_suppressed(self, event: InboundEvent) -> bool:
        return event.is_automated or (event.sender.id in self.ignored_sender_ids)

    async def relay(self, event: InboundEvent, host: str) -> List[DeliveryResult]:
        if self.is_suppressed(event):
            logger.debug("Suppressed automated %s event from %s", event.platform, event.sender.id)
            return []
        if event.platform == SLACK:
            return await self.relay_slack_event(event, host)
        if event.platform == LINE:
            return await self.relay_line_event(event, host)
        logger.error("event from unknown platform: %s", event.platform)
        return []

    # ── Slack → LINE ────────────────────────────────────────

    async def _resolve_slack_sender(self, sender: Sender) -> ResolvedSender:
        if not sender.id:
            return ResolvedSender(UNKNOWN_SENDER)
        lookup = await self.slack.get_profile(sender.id)
        if not lookup.found:
            logger.warning("Slack profile lookup failed for %s: %s", sender.id, lookup.error)
        return ResolvedSender(fallback_sender_name(sender.id, lookup), lookup.avatar_url)

    def _line_sender(self, sender: ResolvedSender, host: str) -> Dict[str, str]:
        line_sender = {"name": truncate_text(sender.name, LINE_SENDER_NAME_LIMIT)}
        if sender.avatar_url:
            line_sender["iconUrl"] = self.proxy_urls.slack(host, sender.avatar_url)
        return line_sender

    def build_line_text_messages(self, text: str, sender: ResolvedSender, host: str) -> List[Dict[str, Any]]:
        """Primary text message followed by one message per embedded link."""
        if not text.strip():
            return []
        messages = [
            {
                "type": "text",
                "text": truncate_text(text, LINE_TEXT_LIMIT),
                "sender": self._line_sender(sender, host),
            }
        ]
        messages.extend({"type": "text", "text": url} for url in extract_slack_links(text))
        return messages

    def build_line_image_messages(self, event: InboundEvent, sender: ResolvedSender, host: str) -> List[Dict[str, Any]]:
        messages = []
        for attachment in event.attachments:
            if not attachment.is_image:
                continue
            messages.append(
                {
                    "type": "image",
                    "originalContentUrl": self.proxy_urls.slack(host, attachment.url_private),
                    "previewImageUrl": self.proxy_urls.slack(host, attachment.thumb_url or attachment.url_private),
                    "sender": self._line_sender(sender, host),
                }
            )
        return messages

    async def relay_slack_event(self, event: InboundEvent, host: str) -> List[DeliveryResult]:
        channel = self.directory.resolve_endpoint(SLACK, event.source_key)
        if channel is None:
            logger.info("message from unknown slack channel: %s/%s", *event.source_key)
            return []
        bridges = self.directory.resolve_bridges_for(channel.name)
        if not bridges:
            return []

        sender = await self._resolve_slack_sender(event.sender)
        text = event.content.text if isinstance(event.content, Text) else ""
        groups = [
            self.build_line_text_messages(text, sender, host),
            self.build_line_image_messages(event, sender, host),
        ]

        results = []
        for bridge in bridges:
            target = self.directory.line_channel_named(bridge.line)
            if target is None:
                logger.error("bridge configured but cannot find target LineChannel: %s", bridge.line)
                continue
            for messages in groups:
                if not messages:
                    continue
                logger.info("Push %d message(s) to LINE %s", len(messages), target.name)
                result = await self.line.push(target.id, messages)
                if not result.success:
                    logger.warning("LINE push to %s failed [%s]: %s", target.name, result.status, result.error)
                results.append(result)
        return results

    # ── LINE → Slack ────────────────────────────────────────

    async def _resolve_line_sender(self, event: InboundEvent) -> ResolvedSender:
        sender_id = event.sender.id
        if not sender_id:
            return ResolvedSender(UNKNOWN_SENDER)
        lookup = await self.line.get_profile(sender_id, event.source_type, event.source_key)
        if not lookup.found:
            logger.warning("LINE profile lookup failed for %s: %s", sender_id, lookup.error)
        return ResolvedSender(fallback_sender_name(sender_id, lookup), lookup.avatar_url)

    def build_slack_payload(self, event: InboundEvent, sender: ResolvedSender, channel_id: str, host: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"channel": channel_id, "username": sender.name}
        if sender.avatar_url:
            payload["icon_url"] = sender.avatar_url
        else:
            payload["icon_emoji"] = LINE_ICON_EMOJI

        content = event.content
        if isinstance(content, Text):
            payload["text"] = content.text
        elif isinstance(content, Image):
            image_url = self.proxy_urls.line(host, content.remote_ref)
            payload["text"] = "<image>"
            payload["blocks"] = [{"type": "image", "image_url": image_url, "alt_text": "image"}]
        elif isinstance(content, Sticker):
            sticker_url = LINE_STICKER_URL.format(sticker_id=content.sticker_id)
            payload["text"] = "<sticker>"
            payload["blocks"] = [{"type": "image", "image_url": sticker_url, "alt_text": "sticker"}]
        elif isinstance(content, Other) and content.content_id:
            payload["text"] = f"<{content.kind}> {self.proxy_urls.line(host, content.content_id)}"
        else:
            payload["text"] = f"<{content.kind}>"
        return payload

    async def relay_line_event(self, event: InboundEvent, host: str) -> List[DeliveryResult]:
        channel = self.directory.resolve_endpoint(LINE, event.source_key)
        if channel is None:
            logger.info("message from unknown line channel: %s", event.source_key)
            return []
        bridges = self.directory.resolve_bridges_for(channel.name)
        if not bridges:
            return []

        sender = await self._resolve_line_sender(event)

        results = []
        for bridge in bridges:
            target = self.directory.slack_channel_named(bridge.slack)
            if target is None:
                logger.error("bridge configured but cannot find target slackChannel: %s", bridge.slack)
                continue
            payload = self.build_slack_payload(event, sender, target.channel_id, host)
            result = await self.slack.post_webhook(target.webhook_url, payload)
            if not result.success:
                logger.warning("Slack webhook for %s failed [%s]: %s", target.name, result.status, result.error)
            results.append(result)
        return results
