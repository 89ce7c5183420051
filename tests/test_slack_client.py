import json

import httpx
import pytest

from sleepbot.clients import SlackClient
from sleepbot.core.errors import SlackAPIError, TransportError


def _client(handler) -> SlackClient:
    return SlackClient(bot_token="xoxb-123", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_send_posts_message_with_bearer_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True, "ts": "1700000000.000100"})

    await _client(handler).send("C0TEST", 'I slept "well"')

    request = seen[0]
    assert str(request.url) == SlackClient.POST_MESSAGE_URL
    assert request.headers["Authorization"] == "Bearer xoxb-123"
    assert json.loads(request.content) == {"channel": "C0TEST", "text": 'I slept "well"'}


@pytest.mark.asyncio
async def test_send_raises_when_slack_refuses() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": False, "error": "channel_not_found"})

    with pytest.raises(SlackAPIError) as excinfo:
        await _client(handler).send("C0TEST", "hi")

    assert excinfo.value.code == "channel_not_found"


@pytest.mark.asyncio
async def test_send_raises_on_http_error_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="upstream error")

    with pytest.raises(SlackAPIError) as excinfo:
        await _client(handler).send("C0TEST", "hi")

    assert excinfo.value.status == 500


@pytest.mark.asyncio
async def test_send_wraps_connection_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("broken pipe", request=request)

    with pytest.raises(TransportError):
        await _client(handler).send("C0TEST", "hi")


def test_bot_token_is_required() -> None:
    with pytest.raises(ValueError):
        SlackClient(bot_token="")
