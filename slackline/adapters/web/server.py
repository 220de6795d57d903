"""FastAPI application factory and background task lifecycle."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from slackline.adapters.line.client import LineClient
from slackline.adapters.slack.client import SlackClient
from slackline.adapters.storage.bridge_file import load_bridge_config
from slackline.adapters.web.dependencies import BridgeServices
from slackline.adapters.web.proxy_routes import proxy_router
from slackline.adapters.web.webhook_routes import webhook_router
from slackline.config import AppConfig
from slackline.domain.directory import BridgeDirectory
from slackline.domain.routing import ProxyUrlBuilder, RelayEngine
from slackline.infrastructure.keepalive import keepalive_loop
from slackline.infrastructure.queue import IngestionQueue
from slackline.infrastructure.watcher import start_config_watcher
from slackline.infrastructure.worker import LineWorker
from slackline.ports.outbound import LinePort, SlackPort

logger = logging.getLogger(__name__)


def build_services(
    config: AppConfig,
    directory: Optional[BridgeDirectory] = None,
    slack: Optional[SlackPort] = None,
    line: Optional[LinePort] = None,
    queue: Optional[IngestionQueue] = None,
) -> BridgeServices:
    if directory is None:
        directory = BridgeDirectory(load_bridge_config(config.bridge_config_path))
    slack = slack or SlackClient(config.slack.bot_token)
    line = line or LineClient(config.line.access_token)
    proxy_urls = ProxyUrlBuilder(
        slack_secret=config.slack.signing_secret,
        line_secret=config.line.channel_secret,
        public_base_url=config.public_base_url,
    )
    engine = RelayEngine(
        directory,
        slack,
        line,
        proxy_urls,
        ignored_sender_ids=[config.slack.bot_user_id],
    )
    return BridgeServices(
        config=config,
        directory=directory,
        queue=queue or IngestionQueue(),
        slack=slack,
        line=line,
        engine=engine,
    )


def warn_unconfigured(services: BridgeServices) -> None:
    """Relaying still starts without tokens, but some calls will fail."""
    if not services.slack.is_configured:
        logger.warning("SLACK_BOT_TOKEN is not set: profile lookups and private files will fail")
    if not services.line.is_configured:
        logger.warning("LINE_ACCESS_TOKEN is not set: pushes to LINE will fail")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the LINE worker, config watcher and keep-alive; stop them on shutdown."""
    services: BridgeServices = app.state.services
    config = services.config
    warn_unconfigured(services)
    stop = asyncio.Event()
    tasks = []

    worker = LineWorker(
        services.queue,
        services.engine,
        config.line.channel_secret_bytes,
        poll_interval=config.worker.poll_interval,
    )
    tasks.append(asyncio.create_task(worker.run(stop)))

    observer = start_config_watcher(services.directory, config.bridge_config_path)

    if config.worker.keepalive_url:
        tasks.append(
            asyncio.create_task(
                keepalive_loop(config.worker.keepalive_url, config.worker.keepalive_interval, stop)
            )
        )

    logger.info("Slack-LINE bridge ready")
    try:
        yield
    finally:
        stop.set()
        # Loops notice the stop event within one poll interval
        _, pending = await asyncio.wait(tasks, timeout=config.worker.poll_interval + 1.0)
        for task in pending:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if observer is not None:
            observer.stop()
            observer.join(timeout=5)
        logger.info("Slack-LINE bridge stopped")


def create_app(config: Optional[AppConfig] = None, services: Optional[BridgeServices] = None) -> FastAPI:
    """Build the app. Raises ConfigError if secrets are missing."""
    if services is None:
        config = config or AppConfig.from_env()
        config.validate()
        services = build_services(config)
    else:
        services.config.validate()

    app = FastAPI(title="Slack LINE Bridge", lifespan=lifespan)
    app.state.services = services
    app.include_router(webhook_router)
    app.include_router(proxy_router)
    return app
