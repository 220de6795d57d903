"""In-memory hand-off between the LINE webhook route and the worker."""

import asyncio
from typing import Optional

from slackline.domain.models import QueuedItem


class IngestionQueue:
    """Many producers (request handlers), one consumer (the worker).

    Backed by an ``asyncio.Queue`` bound to the running loop; every call must
    come from that loop. Items are lost if the process exits before the
    worker takes them.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()

    async def put(self, item: QueuedItem) -> None:
        # A coroutine so background tasks run it on the loop, not in a threadpool
        self._queue.put_nowait(item)

    async def get(self, timeout: float) -> Optional[QueuedItem]:
        """Wait up to ``timeout`` seconds for the next item; None when idle."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    def qsize(self) -> int:
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()
