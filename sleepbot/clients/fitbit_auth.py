"""
Fitbit OAuth utilities.

These helpers build the PKCE authorization URL and talk to the token
endpoint for both the authorization-code and the refresh-token grants.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Dict, Optional
from urllib.parse import urlencode

import httpx

from sleepbot.core.config import FitbitSettings
from sleepbot.core.errors import TokenEndpointError
from sleepbot.models.oauth import ClientCredentials, TokenRecord
from sleepbot.schemas.fitbit import TokenResponse
from sleepbot.utils.http import decode_model, send_request

logger = logging.getLogger(__name__)


class FitbitOAuthClient:
    """Build Fitbit authorization URLs and exchange codes or refresh tokens."""

    AUTH_BASE_URL = "https://www.fitbit.com/oauth2/authorize"
    TOKEN_URL = "https://api.fitbit.com/oauth2/token"

    def __init__(
        self,
        fitbit_settings: FitbitSettings,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._fitbit = fitbit_settings
        self._timeout = timeout
        self._transport = transport

    def build_authorization_url(self, credentials: ClientCredentials) -> str:
        """Construct the Fitbit consent URL for a PKCE setup session."""
        params = {
            "client_id": credentials.client_id,
            "response_type": "code",
            "code_challenge": credentials.code_challenge,
            "code_challenge_method": "S256",
            "scope": self._fitbit.scopes,
            "redirect_uri": credentials.redirect_uri,
        }
        return f"{self.AUTH_BASE_URL}?{urlencode(params)}"

    async def exchange_authorization_code(
        self, code: str, credentials: ClientCredentials
    ) -> TokenRecord:
        """Exchange an authorization code plus PKCE verifier for tokens."""
        form = {
            "client_id": credentials.client_id,
            "code": code,
            "code_verifier": credentials.code_verifier,
            "grant_type": "authorization_code",
            "redirect_uri": credentials.redirect_uri,
        }
        auth = httpx.BasicAuth(credentials.client_id, credentials.client_secret)
        record = await self._request_token(form, auth)
        logger.info("Exchanged authorization code for user %s", record.user_id)
        return record

    async def refresh_token(self, refresh_token: str) -> TokenRecord:
        """Redeem a refresh token; Fitbit rotates it on every success."""
        form = {
            "client_id": self._fitbit.client_id,
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }
        auth = httpx.BasicAuth(self._fitbit.client_id, self._fitbit.client_secret)
        record = await self._request_token(form, auth)
        logger.info("Refreshed access token for user %s", record.user_id)
        return record

    async def _request_token(
        self, form: Dict[str, str], auth: httpx.BasicAuth
    ) -> TokenRecord:
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await send_request(
                client, "POST", self.TOKEN_URL, data=form, auth=auth
            )

        if response.status_code != HTTPStatus.OK:
            raise TokenEndpointError(response.status_code, response.text)

        payload = decode_model(response, TokenResponse)
        return TokenRecord(
            access_token=payload.access_token,
            refresh_token=payload.refresh_token,
            expires_in=payload.expires_in,
            token_type=payload.token_type,
            user_id=payload.user_id,
        )


__all__ = ["FitbitOAuthClient"]
