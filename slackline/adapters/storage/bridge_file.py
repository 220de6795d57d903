"""JSON file loader for the bridge directory."""

import json
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from slackline.domain.directory import DirectorySnapshot
from slackline.domain.models import BotChannel, Bridge, TeamChannel


class SlackChannelEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    team_id: str = Field(alias="teamId")
    channel_id: str = Field(alias="channelId")
    webhook_url: str = Field(alias="webhookUrl")
    token: Optional[str] = None


class LineChannelEntry(BaseModel):
    name: str
    id: str


class BridgeEntry(BaseModel):
    slack: str
    line: str


class BridgeFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    slack_channels: List[SlackChannelEntry] = Field(default_factory=list, alias="slackChannels")
    line_channels: List[LineChannelEntry] = Field(default_factory=list, alias="lineChannels")
    bridges: List[BridgeEntry] = Field(default_factory=list, alias="slackLineBridges")

    def to_snapshot(self) -> DirectorySnapshot:
        return DirectorySnapshot(
            slack_channels=tuple(
                TeamChannel(
                    name=c.name,
                    team_id=c.team_id,
                    channel_id=c.channel_id,
                    webhook_url=c.webhook_url,
                    token=c.token,
                )
                for c in self.slack_channels
            ),
            line_channels=tuple(BotChannel(name=c.name, id=c.id) for c in self.line_channels),
            bridges=tuple(Bridge(slack=b.slack, line=b.line) for b in self.bridges),
        )


def parse_bridge_config(raw: str) -> DirectorySnapshot:
    """Parse the JSON document. Raises ValueError (incl. pydantic ValidationError)."""
    return BridgeFile.model_validate(json.loads(raw)).to_snapshot()


def load_bridge_config(path: str) -> DirectorySnapshot:
    """Load the snapshot from ``path``; a missing file means no bridges."""
    p = Path(path)
    if not p.exists():
        return DirectorySnapshot()
    return parse_bridge_config(p.read_text(encoding="utf-8"))
