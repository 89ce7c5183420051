"""Slack Web API client used as the notification sink."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Optional

import httpx

from sleepbot.core.errors import SlackAPIError
from sleepbot.schemas.slack import SlackMessage, SlackResponse
from sleepbot.utils.http import decode_model, send_request

logger = logging.getLogger(__name__)


class SlackClient:
    """Post plain-text messages with ``chat.postMessage``."""

    POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"

    def __init__(
        self,
        *,
        bot_token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not bot_token:
            raise ValueError("Slack bot token must be provided.")
        self._bot_token = bot_token
        self._timeout = timeout
        self._transport = transport

    async def send(self, channel: str, text: str) -> None:
        """Post ``text`` to ``channel``; raises ``SlackAPIError`` on refusal."""
        message = SlackMessage(channel=channel, text=text)
        headers = {"Authorization": f"Bearer {self._bot_token}"}
        logger.info("Sending Slack message to channel %s", channel)

        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await send_request(
                client,
                "POST",
                self.POST_MESSAGE_URL,
                json=message.model_dump(),
                headers=headers,
            )

        if response.status_code != HTTPStatus.OK:
            raise SlackAPIError(response.status_code, response.text)

        result = decode_model(response, SlackResponse)
        if not result.ok:
            raise SlackAPIError(response.status_code, result.error or "unknown_error")


__all__ = ["SlackClient"]
