"""Inbound webhook authentication for both platforms.

Slack requests are verified synchronously, before any payload parsing:
a timeout-triggered retry is acknowledged without reprocessing, the request
timestamp must be within five minutes of now, and the ``X-Slack-Signature``
header must equal ``"v0=" + hex(HMAC(secret, "v0:<ts>:<body>"))``.

LINE requests only need a signature header at ingress; the signature itself
(``base64(HMAC(secret, body))``) is checked by the worker after dequeue.
"""

import logging
import time
from enum import Enum
from typing import Optional

from slackline.domain.signing import mac_base64, mac_hex, verify

logger = logging.getLogger(__name__)

SLACK_SIGNATURE_VERSION = "v0"
SLACK_MAX_CLOCK_SKEW_SECONDS = 60 * 5
SLACK_RETRY_REASON_TIMEOUT = "http_timeout"


class GuardVerdict(Enum):
    ACCEPT = "accept"
    IGNORE_RETRY = "ignore_retry"
    REJECT = "reject"


def slack_signature(timestamp: str, body: bytes, secret: str) -> str:
    base = f"{SLACK_SIGNATURE_VERSION}:{timestamp}:".encode("utf-8") + body
    return f"{SLACK_SIGNATURE_VERSION}={mac_hex(base, secret)}"


def check_slack_request(
    body: bytes,
    timestamp: Optional[str],
    signature: Optional[str],
    secret: str,
    retry_reason: Optional[str] = None,
    now: Optional[float] = None,
) -> GuardVerdict:
    if retry_reason == SLACK_RETRY_REASON_TIMEOUT:
        return GuardVerdict.IGNORE_RETRY

    if not timestamp:
        logger.info("Slack request without timestamp header")
        return GuardVerdict.REJECT
    try:
        ts = int(timestamp)
    except ValueError:
        logger.info("Slack request with unparsable timestamp: %r", timestamp)
        return GuardVerdict.REJECT

    now = time.time() if now is None else now
    if abs(now - ts) > SLACK_MAX_CLOCK_SKEW_SECONDS:
        logger.info("Slack request timestamp outside allowed window: %s", ts)
        return GuardVerdict.REJECT

    expected = slack_signature(timestamp, body, secret)
    logger.debug("Slack signature check (received:%s, calculated:%s)", signature, expected)
    if not verify(signature, expected):
        logger.info("Slack signature mismatch.")
        return GuardVerdict.REJECT
    return GuardVerdict.ACCEPT


def line_signature(body: bytes, secret: bytes) -> str:
    return mac_base64(body, secret)


def verify_line_signature(signature: str, body: bytes, secret: bytes) -> bool:
    expected = line_signature(body, secret)
    logger.debug("LINE signature check (received:%s, calculated:%s)", signature, expected)
    return verify(signature, expected)
