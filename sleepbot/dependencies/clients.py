"""
Factory functions to provide shared clients and services as FastAPI dependencies.

The same factories wire the daemon started from the CLI.
"""

from functools import lru_cache
from typing import Optional

from sleepbot.clients import FitbitOAuthClient, FitbitSleepClient, SlackClient
from sleepbot.core.config import get_settings
from sleepbot.models.oauth import ClientCredentials
from sleepbot.services import (
    FitbitTokenService,
    TokenCipherService,
    TokenStore,
    generate_pair,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_client_credentials() -> ClientCredentials:
    """Client secrets plus a PKCE pair generated once per process."""
    settings = _settings()
    verifier, challenge = generate_pair()
    return ClientCredentials(
        client_id=settings.fitbit.client_id,
        client_secret=settings.fitbit.client_secret,
        code_verifier=verifier,
        code_challenge=challenge,
        redirect_uri=settings.fitbit.callback_url,
    )


@lru_cache()
def get_fitbit_oauth_client() -> FitbitOAuthClient:
    """Create a singleton Fitbit OAuth client."""
    settings = _settings()
    return FitbitOAuthClient(settings.fitbit, timeout=settings.http_timeout_seconds)


@lru_cache()
def get_fitbit_sleep_client() -> FitbitSleepClient:
    """Provide the sleep log client."""
    return FitbitSleepClient(timeout=_settings().http_timeout_seconds)


@lru_cache()
def get_token_cipher_service() -> Optional[TokenCipherService]:
    """Provide the token file cipher when an encryption secret is configured."""
    secret = _settings().security.token_encryption_secret
    if not secret:
        return None
    return TokenCipherService(secret=secret)


@lru_cache()
def get_token_store() -> TokenStore:
    """Provide the JSON token file store."""
    return TokenStore(_settings().token_file, cipher=get_token_cipher_service())


@lru_cache()
def get_fitbit_token_service() -> FitbitTokenService:
    """Provide the owner of the live token record."""
    return FitbitTokenService(
        store=get_token_store(),
        oauth_client=get_fitbit_oauth_client(),
    )


@lru_cache()
def get_slack_client() -> Optional[SlackClient]:
    """Provide the Slack notifier when a bot token is configured."""
    settings = _settings()
    if not settings.slack.bot_token:
        return None
    return SlackClient(
        bot_token=settings.slack.bot_token, timeout=settings.http_timeout_seconds
    )


__all__ = [
    "get_client_credentials",
    "get_fitbit_oauth_client",
    "get_fitbit_sleep_client",
    "get_fitbit_token_service",
    "get_slack_client",
    "get_token_cipher_service",
    "get_token_store",
]
