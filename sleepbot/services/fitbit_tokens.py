"""
Owner of the live Fitbit token record.

Every read used to build an outgoing request and every replacement of the
record goes through one ``asyncio.Lock``. Records are immutable, so a request
that already took a snapshot keeps its bearer value even if a refresh lands
while it is in flight.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

from sleepbot.models.oauth import ClientCredentials, TokenRecord
from sleepbot.services.token_store import TokenNotFoundError, TokenStore

logger = logging.getLogger(__name__)


class TokenExchanger(Protocol):
    async def exchange_authorization_code(
        self, code: str, credentials: ClientCredentials
    ) -> TokenRecord: ...

    async def refresh_token(self, refresh_token: str) -> TokenRecord: ...


class FitbitTokenService:
    """Single-writer cell holding the current token record."""

    def __init__(
        self,
        store: TokenStore,
        oauth_client: TokenExchanger,
        record: Optional[TokenRecord] = None,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._record = record
        self._lock = asyncio.Lock()

    def load(self) -> TokenRecord:
        """Read the persisted record into memory; the daemon cannot start without it."""
        self._record = self._store.load()
        logger.info("Loaded token record for user %s", self._record.user_id)
        return self._record

    async def snapshot(self) -> TokenRecord:
        """Return a consistent view of the current record."""
        async with self._lock:
            if self._record is None:
                raise TokenNotFoundError("No token record loaded.")
            return self._record

    async def exchange_authorization_code(
        self, code: str, credentials: ClientCredentials
    ) -> TokenRecord:
        """Complete the interactive setup and persist the first record."""
        record = await self._oauth.exchange_authorization_code(code, credentials)
        async with self._lock:
            self._record = record
            self._store.save(record)
        return record

    async def refresh(self, *, stale_access_token: Optional[str] = None) -> TokenRecord:
        """Redeem the refresh token and persist the rotated pair.

        When ``stale_access_token`` is given and the current record already
        carries a different access token, another caller refreshed in the
        meantime and the current record is returned as is. On failure the
        current record is left untouched.
        """
        async with self._lock:
            current = self._record
            if current is None:
                raise TokenNotFoundError("No token record loaded.")
            if stale_access_token is not None and current.access_token != stale_access_token:
                logger.info("Token already refreshed by another caller")
                return current

            refreshed = await self._oauth.refresh_token(current.refresh_token)
            # The old refresh token is spent; keep the new pair even if saving fails.
            self._record = refreshed
            self._store.save(refreshed)
            return refreshed


__all__ = ["FitbitTokenService", "TokenExchanger"]
