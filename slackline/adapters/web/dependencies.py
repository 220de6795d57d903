"""Per-process service container handed to the routes via ``app.state``."""

from dataclasses import dataclass

from fastapi import Request

from slackline.config import AppConfig
from slackline.domain.directory import BridgeDirectory
from slackline.domain.routing import RelayEngine
from slackline.infrastructure.queue import IngestionQueue
from slackline.ports.outbound import LinePort, SlackPort


@dataclass
class BridgeServices:
    config: AppConfig
    directory: BridgeDirectory
    queue: IngestionQueue
    slack: SlackPort
    line: LinePort
    engine: RelayEngine


def get_services(request: Request) -> BridgeServices:
    return request.app.state.services
