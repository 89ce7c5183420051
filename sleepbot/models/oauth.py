"""
Domain models for OAuth credentials and the persisted token record.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenRecord(BaseModel):
    """The single Fitbit token pair the daemon works with."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str = Field(..., repr=False)
    refresh_token: str = Field(..., repr=False)
    expires_in: int = Field(..., description="Lifetime of the access token in seconds.")
    token_type: str = "Bearer"
    user_id: str
    issued_at: datetime = Field(default_factory=_utcnow)

    @property
    def expires_at(self) -> datetime:
        issued_at = self.issued_at
        if issued_at.tzinfo is None:
            issued_at = issued_at.replace(tzinfo=timezone.utc)
        return issued_at + timedelta(seconds=self.expires_in)


class ClientCredentials(BaseModel):
    """Client secrets plus the PKCE pair of one interactive setup session."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str = Field(..., repr=False)
    code_verifier: str = Field(..., repr=False)
    code_challenge: str
    redirect_uri: str


__all__ = ["ClientCredentials", "TokenRecord"]
