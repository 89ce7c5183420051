"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_client_credentials,
    get_fitbit_oauth_client,
    get_fitbit_sleep_client,
    get_fitbit_token_service,
    get_slack_client,
    get_token_cipher_service,
    get_token_store,
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
