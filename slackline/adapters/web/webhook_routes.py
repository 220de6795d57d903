"""Inbound webhook routes for Slack (synchronous) and LINE (queued)."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from fastapi.responses import PlainTextResponse

from slackline.adapters.web.dependencies import BridgeServices, get_services
from slackline.domain.decode import Ignored, PayloadError, UrlVerification, decode_slack_payload
from slackline.domain.guard import GuardVerdict, check_slack_request
from slackline.domain.models import QueuedItem

logger = logging.getLogger(__name__)

webhook_router = APIRouter(tags=["Webhooks"])


@webhook_router.post("/slack2")
@webhook_router.post("/slack")
async def slack_webhook(request: Request, services: BridgeServices = Depends(get_services)):
    body = await request.body()
    verdict = check_slack_request(
        body,
        timestamp=request.headers.get("X-Slack-Request-Timestamp"),
        signature=request.headers.get("X-Slack-Signature"),
        secret=services.config.slack.signing_secret,
        retry_reason=request.headers.get("X-Slack-Retry-Reason"),
    )
    if verdict is GuardVerdict.IGNORE_RETRY:
        return Response(status_code=200)

    if verdict is GuardVerdict.REJECT:
        logger.info("Slack request failed authentication.")
        return Response(status_code=400)

    logger.info("Processing request from Slack: %s", body.decode("utf-8", errors="replace"))

    try:
        payload = decode_slack_payload(body)
    except PayloadError as e:
        logger.info("Malformed Slack payload: %s", e)
        return Response(status_code=400)

    if isinstance(payload, UrlVerification):
        return PlainTextResponse(payload.challenge)
    if isinstance(payload, Ignored):
        logger.debug("Slack payload ignored: %s", payload.reason)
        return Response(status_code=200)

    await services.engine.relay(payload, request.url.netloc)
    return Response(status_code=200)


@webhook_router.post("/line")
async def line_webhook(
    request: Request,
    background: BackgroundTasks,
    services: BridgeServices = Depends(get_services),
):
    signature = request.headers.get("X-Line-Signature")
    if not signature:
        logger.info("X-Line-Signature header missing.")
        return Response(status_code=400)

    body = await request.body()
    item = QueuedItem(signature=signature, body=body, host=request.url.netloc)
    # Background tasks run after the response has been sent
    background.add_task(services.queue.put, item)
    return Response(status_code=200)


@webhook_router.get("/health")
async def health():
    return Response(status_code=200)
