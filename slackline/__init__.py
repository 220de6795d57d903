"""Slack-LINE bridge: signed webhook relay and content proxy."""

from slackline.config import CONFIG, AppConfig, ConfigError
from slackline.domain.directory import BridgeDirectory, DirectorySnapshot
from slackline.domain.models import Bridge, BotChannel, InboundEvent, QueuedItem, TeamChannel
from slackline.domain.routing import ProxyUrlBuilder, RelayEngine

__all__ = [
    "CONFIG",
    "AppConfig",
    "ConfigError",
    "BridgeDirectory",
    "DirectorySnapshot",
    "Bridge",
    "BotChannel",
    "InboundEvent",
    "QueuedItem",
    "TeamChannel",
    "ProxyUrlBuilder",
    "RelayEngine",
]
