"""Exception taxonomy shared by the API clients and the scheduler."""

from __future__ import annotations


class SleepBotError(Exception):
    """Base class for failures the daemon logs and absorbs."""


class TransportError(SleepBotError):
    """Raised when the request never produced an HTTP response."""


class DecodeError(SleepBotError):
    """Raised when a response body does not match the expected schema."""


class ProviderError(SleepBotError):
    """Raised when a remote API answers with an unexpected status."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"provider returned {status}: {body}")
        self.status = status
        self.body = body


class Unauthorized(ProviderError):
    """Raised on 401 responses; the access token needs a refresh."""


class TokenEndpointError(ProviderError):
    """Raised when the OAuth token endpoint rejects an exchange."""


class SlackAPIError(ProviderError):
    """Raised when Slack refuses to post a message."""

    def __init__(self, status: int, code: str) -> None:
        super().__init__(status, code)
        self.code = code


__all__ = [
    "DecodeError",
    "ProviderError",
    "SlackAPIError",
    "SleepBotError",
    "TokenEndpointError",
    "TransportError",
    "Unauthorized",
]
