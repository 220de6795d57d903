"""Streaming GET shared by both platform clients (content proxy upstream)."""

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, Dict, Optional

import aiohttp

from slackline.ports.outbound import ContentResult

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
BAD_GATEWAY = 502


def _closer(session: aiohttp.ClientSession, resp: aiohttp.ClientResponse) -> Callable[[], Awaitable[None]]:
    closed = False

    async def close() -> None:
        nonlocal closed
        if closed:
            return
        closed = True
        resp.release()
        await session.close()

    return close


async def _iter_body(resp: aiohttp.ClientResponse, close: Callable[[], Awaitable[None]]) -> AsyncIterator[bytes]:
    try:
        async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
            yield chunk
    finally:
        await close()


async def stream_content(url: str, headers: Optional[Dict[str, str]] = None) -> ContentResult:
    """GET ``url`` and hand back the open body stream.

    The session stays open until the body is exhausted or the result is
    closed; on a non-2xx status it is closed immediately.
    """
    session = aiohttp.ClientSession(headers=headers or {})
    try:
        resp = await session.get(url)
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        await session.close()
        logger.warning("Content fetch failed for %s: %s", url, e)
        return ContentResult(status=BAD_GATEWAY)

    if not (200 <= resp.status < 300):
        logger.info("Content fetch for %s returned %s", url, resp.status)
        resp.release()
        await session.close()
        return ContentResult(status=resp.status)

    close = _closer(session, resp)
    return ContentResult(
        status=resp.status,
        content_type=resp.headers.get("Content-Type"),
        body=_iter_body(resp, close),
        closer=close,
    )
