"""Client for the date-scoped Fitbit sleep log resource."""

from __future__ import annotations

import logging
from datetime import date
from http import HTTPStatus
from typing import Optional

import httpx

from sleepbot.core.errors import ProviderError, Unauthorized
from sleepbot.models.sleep import SleepSession
from sleepbot.schemas.fitbit import SleepLogResponse
from sleepbot.utils.http import decode_model, send_request

logger = logging.getLogger(__name__)


class FitbitSleepClient:
    """Fetch the sleep logs recorded for a calendar day."""

    API_BASE_URL = "https://api.fitbit.com/1.2"

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    def sleep_url(self, user_id: str, day: date) -> str:
        return f"{self.API_BASE_URL}/user/{user_id}/sleep/date/{day.isoformat()}.json"

    async def fetch_sleep(
        self, access_token: str, user_id: str, day: date
    ) -> SleepSession:
        """Return the day's sleep session; no entries means no data yet."""
        headers = {"Authorization": f"Bearer {access_token}"}
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await send_request(
                client, "GET", self.sleep_url(user_id, day), headers=headers
            )

        if response.status_code == HTTPStatus.UNAUTHORIZED:
            raise Unauthorized(response.status_code, response.text)
        if response.status_code != HTTPStatus.OK:
            raise ProviderError(response.status_code, response.text)

        payload = decode_model(response, SleepLogResponse)
        logger.debug("Fitbit returned %d sleep entries for %s", len(payload.sleep), day)
        return SleepSession.from_entries(day, payload.sleep)


__all__ = ["FitbitSleepClient"]
