"""Route tests for the Slack and LINE webhooks."""

import hashlib
import hmac
import json
import logging
import threading
import time
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from slackline.adapters.web.dependencies import BridgeServices
from slackline.adapters.web.server import create_app
from slackline.config import AppConfig, LineConfig, SlackConfig
from slackline.domain.directory import BridgeDirectory, DirectorySnapshot
from slackline.domain.models import BotChannel, Bridge, TeamChannel
from slackline.domain.routing import ProxyUrlBuilder, RelayEngine
from slackline.infrastructure.queue import IngestionQueue
from slackline.ports.outbound import DeliveryResult, ProfileLookup

SLACK_SECRET = "slack-signing-secret"
LINE_SECRET = "00112233445566778899aabbccddeeff"


def _sign_slack(body: bytes, ts: int = None, secret: str = SLACK_SECRET) -> dict:
    ts = int(time.time()) if ts is None else ts
    base = f"v0:{ts}:".encode() + body
    sig = "v0=" + hmac.new(secret.encode(), base, hashlib.sha256).hexdigest()
    return {"X-Slack-Request-Timestamp": str(ts), "X-Slack-Signature": sig}


def _message_body(channel="C1", text="hi", **event) -> bytes:
    event = {"type": "message", "channel": channel, "user": "U1", "text": text, **event}
    return json.dumps({"type": "event_callback", "team_id": "T1", "event": event}).encode()


@pytest.fixture
def slack_port():
    port = MagicMock()
    port.get_profile = AsyncMock(return_value=ProfileLookup(found=True, display_name="Alice"))
    port.post_webhook = AsyncMock(return_value=DeliveryResult(success=True, status=200))
    return port


@pytest.fixture
def line_port():
    port = MagicMock()
    port.get_profile = AsyncMock(return_value=ProfileLookup(found=True, display_name="Bob"))
    port.push = AsyncMock(return_value=DeliveryResult(success=True, status=200))
    return port


@pytest.fixture
def services(slack_port, line_port):
    config = AppConfig(
        slack=SlackConfig(signing_secret=SLACK_SECRET),
        line=LineConfig(channel_secret=LINE_SECRET),
    )
    directory = BridgeDirectory(
        DirectorySnapshot(
            slack_channels=(
                TeamChannel("general", "T1", "C1", "https://hooks.slack.test/1"),
                TeamChannel("unbridged", "T1", "C2", "https://hooks.slack.test/2"),
            ),
            line_channels=(BotChannel("family", "Cfamily"),),
            bridges=(Bridge("general", "family"),),
        )
    )
    engine = RelayEngine(directory, slack_port, line_port, ProxyUrlBuilder(SLACK_SECRET, LINE_SECRET))
    return BridgeServices(
        config=config,
        directory=directory,
        queue=IngestionQueue(),
        slack=slack_port,
        line=line_port,
        engine=engine,
    )


@pytest.fixture
def app(services):
    return create_app(services=services)


@pytest.fixture
def transport(app):
    return ASGITransport(app=app)


async def _post(transport, path, body: bytes, headers: dict):
    async with AsyncClient(transport=transport, base_url="http://bridge.test") as ac:
        return await ac.post(path, content=body, headers=headers)


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, transport):
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            resp = await ac.get("/health")
        assert resp.status_code == 200


class TestSlackWebhook:
    @pytest.mark.asyncio
    async def test_url_verification_echoes_challenge(self, transport):
        body = json.dumps({"type": "url_verification", "challenge": "abc123", "token": "x"}).encode()
        resp = await _post(transport, "/slack2", body, _sign_slack(body))
        assert resp.status_code == 200
        assert resp.text == "abc123"

    @pytest.mark.asyncio
    async def test_legacy_path(self, transport):
        body = json.dumps({"type": "url_verification", "challenge": "xyz"}).encode()
        resp = await _post(transport, "/slack", body, _sign_slack(body))
        assert resp.text == "xyz"

    @pytest.mark.asyncio
    async def test_message_relayed_to_line(self, transport, line_port):
        body = _message_body(text="hello <http://x.test|link>")
        resp = await _post(transport, "/slack2", body, _sign_slack(body))
        assert resp.status_code == 200
        to, messages = line_port.push.await_args.args
        assert to == "Cfamily"
        assert [m["text"] for m in messages] == ["hello <http://x.test|link>", "http://x.test"]

    @pytest.mark.asyncio
    async def test_proxy_urls_use_request_host(self, transport, slack_port, line_port):
        slack_port.get_profile.return_value = ProfileLookup(
            found=True, display_name="Alice", avatar_url="https://avatars.slack.test/a.png"
        )
        body = _message_body()
        await _post(transport, "/slack2", body, _sign_slack(body))
        icon = line_port.push.await_args.args[1][0]["sender"]["iconUrl"]
        assert icon.startswith("https://bridge.test/proxy/slack/")

    @pytest.mark.asyncio
    async def test_no_bridge_no_outbound_call(self, transport, line_port):
        body = _message_body(channel="C2")
        resp = await _post(transport, "/slack2", body, _sign_slack(body))
        assert resp.status_code == 200
        line_port.push.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_channel_acknowledged(self, transport, line_port):
        body = _message_body(channel="C404")
        resp = await _post(transport, "/slack2", body, _sign_slack(body))
        assert resp.status_code == 200
        line_port.push.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bot_message_not_relayed(self, transport, line_port):
        body = _message_body(subtype="bot_message", bot_id="B1")
        resp = await _post(transport, "/slack2", body, _sign_slack(body))
        assert resp.status_code == 200
        line_port.push.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bad_signature_rejected(self, transport, line_port):
        body = _message_body()
        resp = await _post(transport, "/slack2", body, _sign_slack(body, secret="wrong"))
        assert resp.status_code == 400
        assert resp.content == b""
        line_port.push.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejected_body_not_logged(self, transport, caplog):
        body = _message_body(text="forged-marker")
        with caplog.at_level(logging.DEBUG, logger="slackline"):
            resp = await _post(transport, "/slack2", body, _sign_slack(body, secret="wrong"))
        assert resp.status_code == 400
        assert "forged-marker" not in caplog.text

    @pytest.mark.asyncio
    async def test_stale_timestamp_rejected(self, transport, line_port):
        body = _message_body()
        resp = await _post(transport, "/slack2", body, _sign_slack(body, ts=int(time.time()) - 600))
        assert resp.status_code == 400
        line_port.push.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_headers_rejected(self, transport):
        resp = await _post(transport, "/slack2", _message_body(), {})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_malformed_payload(self, transport):
        body = b"not json"
        resp = await _post(transport, "/slack2", body, _sign_slack(body))
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_timeout_retry_never_reprocessed(self, app, services, transport):
        services.engine.relay = AsyncMock(return_value=[])
        body = _message_body()
        headers = _sign_slack(body)

        resp = await _post(transport, "/slack2", body, headers)
        assert resp.status_code == 200
        assert services.engine.relay.await_count == 1

        retry_headers = {**headers, "X-Slack-Retry-Num": "1", "X-Slack-Retry-Reason": "http_timeout"}
        for _ in range(3):
            resp = await _post(transport, "/slack2", body, retry_headers)
            assert resp.status_code == 200
        assert services.engine.relay.await_count == 1


class TestLineWebhook:
    @pytest.mark.asyncio
    async def test_missing_signature(self, transport, services):
        resp = await _post(transport, "/line", b'{"events": []}', {})
        assert resp.status_code == 400
        assert services.queue.empty()

    @pytest.mark.asyncio
    async def test_enqueues_raw_item(self, transport, services):
        body = b'{"events": []}'
        resp = await _post(transport, "/line", body, {"X-Line-Signature": "sig=="})
        assert resp.status_code == 200
        assert services.queue.qsize() == 1
        item = await services.queue.get(timeout=0.1)
        assert item.signature == "sig=="
        assert item.body == body
        assert item.host == "bridge.test"

    @pytest.mark.asyncio
    async def test_enqueue_runs_on_event_loop_thread(self, transport, services):
        threads = []
        put_nowait = services.queue._queue.put_nowait

        def recording_put_nowait(item):
            threads.append(threading.get_ident())
            put_nowait(item)

        services.queue._queue.put_nowait = recording_put_nowait
        resp = await _post(transport, "/line", b'{"events": []}', {"X-Line-Signature": "sig=="})
        assert resp.status_code == 200
        assert threads == [threading.get_ident()]

    @pytest.mark.asyncio
    async def test_unverified_body_still_acknowledged(self, transport, services, line_port):
        # Verification happens in the worker, not here
        resp = await _post(transport, "/line", b"garbage", {"X-Line-Signature": "bogus"})
        assert resp.status_code == 200
        line_port.push.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_response_completes_before_enqueue(self, app, services):
        body = b'{"events": []}'
        scope = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": "POST",
            "scheme": "http",
            "path": "/line",
            "raw_path": b"/line",
            "root_path": "",
            "query_string": b"",
            "headers": [
                (b"host", b"bridge.test"),
                (b"x-line-signature", b"sig=="),
                (b"content-length", str(len(body)).encode()),
            ],
            "client": ("127.0.0.1", 12345),
            "server": ("bridge.test", 80),
        }
        received = [{"type": "http.request", "body": body, "more_body": False}]

        async def receive():
            if received:
                return received.pop(0)
            return {"type": "http.disconnect"}

        seen = []

        async def send(message):
            # Snapshot queue state as each response part goes out
            seen.append((message["type"], services.queue.qsize()))

        await app(scope, receive, send)

        assert seen[0] == ("http.response.start", 0)
        assert seen[-1] == ("http.response.body", 0)
        assert services.queue.qsize() == 1
