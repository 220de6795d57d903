"""Periodic self-ping that keeps a hosted instance from idling out."""

import asyncio
import logging
from typing import Optional

import aiohttp

logger = logging.getLogger(__name__)


async def ping_once(url: str) -> bool:
    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(url) as resp:
                if 200 <= resp.status < 300:
                    return True
                logger.warning("Keep-alive ping failed [%s]", resp.status)
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.warning("Keep-alive ping failed: %s", e)
    return False


async def keepalive_loop(url: str, interval: float = 60.0, stop: Optional[asyncio.Event] = None) -> None:
    stop = stop or asyncio.Event()
    logger.debug("Keep-alive loop is starting: %s every %ss", url, interval)
    while not stop.is_set():
        await ping_once(url)
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass
    logger.debug("Keep-alive loop stopped.")
