"""Content proxy: serves platform-hosted media behind capability tokens."""

import logging

from fastapi import APIRouter, Depends, Response
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from slackline.adapters.web.dependencies import BridgeServices, get_services
from slackline.domain.signing import verify_capability_token
from slackline.ports.outbound import ContentResult

logger = logging.getLogger(__name__)

proxy_router = APIRouter(prefix="/proxy", tags=["Proxy"])

FORBIDDEN = 403


async def content_response(result: ContentResult) -> Response:
    if not result.ok or result.body is None:
        await result.close()
        return Response(status_code=result.status)
    headers = {"Content-Type": result.content_type} if result.content_type else None
    # Also runs when the client disconnects before the body is read
    return StreamingResponse(
        result.body,
        status_code=result.status,
        headers=headers,
        background=BackgroundTask(result.close),
    )


@proxy_router.get("/line/{token}/{message_id}")
async def proxy_line(token: str, message_id: str, services: BridgeServices = Depends(get_services)):
    if not verify_capability_token(token, message_id, services.config.line.channel_secret):
        logger.info("Proxy token mismatch for LINE content %s", message_id)
        return Response(status_code=FORBIDDEN)
    return await content_response(await services.line.fetch_content(message_id))


@proxy_router.get("/slack/{token}/{encoded_url:path}")
async def proxy_slack(token: str, encoded_url: str, services: BridgeServices = Depends(get_services)):
    # The router percent-decodes the path once, which undoes quote(url, safe="")
    url = encoded_url
    logger.info("Proxy request to Slack: %s", url)
    if not verify_capability_token(token, url, services.config.slack.signing_secret):
        logger.info("Proxy token mismatch for Slack content")
        return Response(status_code=FORBIDDEN)
    return await content_response(await services.slack.fetch_content(url))
