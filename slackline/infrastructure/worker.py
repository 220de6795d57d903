"""Background consumer for queued LINE webhook deliveries."""

import asyncio
import logging
from typing import Optional

from slackline.domain.decode import PayloadError, decode_line_payload
from slackline.domain.guard import verify_line_signature
from slackline.domain.models import QueuedItem
from slackline.domain.routing import RelayEngine
from slackline.infrastructure.queue import IngestionQueue

logger = logging.getLogger(__name__)


class LineWorker:
    """Single consumer: verify, decode and relay one queued item at a time."""

    def __init__(
        self,
        queue: IngestionQueue,
        engine: RelayEngine,
        channel_secret: bytes,
        poll_interval: float = 1.0,
    ):
        self.queue = queue
        self.engine = engine
        self.channel_secret = channel_secret
        self.poll_interval = poll_interval
        self.processed = 0

    async def process_item(self, item: QueuedItem) -> bool:
        """Handle one item. Returns False if it was dropped."""
        logger.info("Processing request from LINE: %s", item.body.decode("utf-8", errors="replace"))

        if not verify_line_signature(item.signature, item.body, self.channel_secret):
            logger.info("LINE signature mismatch.")
            return False

        try:
            events = decode_line_payload(item.body)
        except PayloadError as e:
            logger.warning("Malformed LINE payload dropped: %s", e)
            return False

        for event in events:
            await self.engine.relay(event, item.host)
        return True

    async def run(self, stop: Optional[asyncio.Event] = None) -> None:
        """Consume until ``stop`` is set. Checked once per iteration."""
        stop = stop or asyncio.Event()
        logger.debug("LINE worker is starting.")
        while not stop.is_set():
            item = await self.queue.get(timeout=self.poll_interval)
            if item is None:
                continue
            try:
                await self.process_item(item)
            except Exception:
                logger.exception("Unexpected error while processing LINE item")
            finally:
                self.processed += 1
        logger.info("LINE worker stopped after %d item(s).", self.processed)
