"""Bridge directory: which Slack channel is paired with which LINE channel."""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from slackline.domain.models import LINE, SLACK, BotChannel, Bridge, ChannelEndpoint, TeamChannel


@dataclass(frozen=True)
class DirectorySnapshot:
    """Immutable view of the configured channels and bridges."""

    slack_channels: Tuple[TeamChannel, ...] = field(default_factory=tuple)
    line_channels: Tuple[BotChannel, ...] = field(default_factory=tuple)
    bridges: Tuple[Bridge, ...] = field(default_factory=tuple)


class BridgeDirectory:
    """Read-mostly lookup over the current snapshot.

    ``reload`` swaps the whole snapshot in a single reference assignment, so a
    lookup sees either the old or the new configuration, never a mix. Each
    method reads ``self._snapshot`` once.
    """

    def __init__(self, snapshot: Optional[DirectorySnapshot] = None):
        self._snapshot = snapshot or DirectorySnapshot()

    @property
    def snapshot(self) -> DirectorySnapshot:
        return self._snapshot

    def reload(self, snapshot: DirectorySnapshot) -> None:
        self._snapshot = snapshot

    def resolve_bridges_for(self, endpoint_name: str) -> Tuple[Bridge, ...]:
        """Bridges touching ``endpoint_name`` from either side, deduplicated."""
        seen = []
        for bridge in self._snapshot.bridges:
            if endpoint_name in (bridge.slack, bridge.line) and bridge not in seen:
                seen.append(bridge)
        return tuple(seen)

    def resolve_endpoint(
        self, platform: str, match_key: Union[str, Tuple[str, str]]
    ) -> Optional[ChannelEndpoint]:
        snapshot = self._snapshot
        if platform == SLACK:
            channels = snapshot.slack_channels
        elif platform == LINE:
            channels = snapshot.line_channels
        else:
            return None
        for channel in channels:
            if channel.match_key == match_key:
                return channel
        return None

    def slack_channel_named(self, name: str) -> Optional[TeamChannel]:
        return next((c for c in self._snapshot.slack_channels if c.name == name), None)

    def line_channel_named(self, name: str) -> Optional[BotChannel]:
        return next((c for c in self._snapshot.line_channels if c.name == name), None)
