"""
Application configuration models and helpers.

Centralizes settings management so the setup server, the daemon and the
maintenance scripts share a consistent configuration surface.
"""

from datetime import time
from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()

DEFAULT_FITBIT_SCOPES = (
    "activity heartrate location nutrition oxygen_saturation profile "
    "respiratory_rate settings sleep social temperature weight"
)


class FitbitSettings(BaseSettings):
    """Configuration required for interacting with the Fitbit Web API."""

    model_config = SettingsConfigDict(extra="ignore")

    client_id: str = Field(..., validation_alias="FITBIT_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="FITBIT_CLIENT_SECRET")
    callback_url: str = Field(
        "http://localhost:8080/callback",
        validation_alias="FITBIT_CALLBACK_URL",
        description="Redirect URI registered with the Fitbit application.",
    )
    scopes: str = Field(DEFAULT_FITBIT_SCOPES, validation_alias="FITBIT_SCOPES")

    @field_validator("scopes", mode="before")
    @classmethod
    def _join_scopes(cls, value: str | list[str] | tuple[str, ...]) -> str:
        """Accept comma or space separated scopes, store them space separated."""
        if isinstance(value, (list, tuple)):
            parts = list(value)
        else:
            parts = value.replace(",", " ").split()
        return " ".join(part.strip() for part in parts if part.strip())


class SlackSettings(BaseSettings):
    """Slack bot used as the notification sink."""

    model_config = SettingsConfigDict(extra="ignore")

    bot_token: Optional[str] = Field(None, validation_alias="SLACK_BOT_TOKEN")
    channel_id: Optional[str] = Field(None, validation_alias="SLACK_CHANNEL_ID")

    @property
    def is_configured(self) -> bool:
        return bool(self.bot_token and self.channel_id)


class SchedulerSettings(BaseSettings):
    """Timing knobs for the daily polling loop."""

    model_config = SettingsConfigDict(extra="ignore")

    day_start: time = Field(time(5, 0), validation_alias="SLEEPBOT_DAY_START")
    cutoff_hour: int = Field(22, ge=0, le=23, validation_alias="SLEEPBOT_CUTOFF_HOUR")
    poll_interval_seconds: float = Field(
        3600.0, gt=0, validation_alias="SLEEPBOT_POLL_INTERVAL"
    )
    refresh_interval_seconds: float = Field(
        6 * 3600.0, gt=0, validation_alias="SLEEPBOT_REFRESH_INTERVAL"
    )
    goal_hours: float = Field(8.0, gt=0, validation_alias="SLEEPBOT_GOAL_HOURS")


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting the token file."
        ),
    )


class AppSettings(BaseSettings):
    """Root settings object for the daemon and the setup server."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    log_level: str = Field("INFO", validation_alias="SLEEPBOT_LOG_LEVEL")
    port: int = Field(8080, validation_alias="PORT")
    token_file: Path = Field(Path("tokens.json"), validation_alias="SLEEPBOT_TOKEN_FILE")
    http_timeout_seconds: float = Field(
        30.0, gt=0, validation_alias="SLEEPBOT_HTTP_TIMEOUT"
    )
    fitbit: FitbitSettings = Field(default_factory=FitbitSettings)
    slack: SlackSettings = Field(default_factory=SlackSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "FitbitSettings",
    "SchedulerSettings",
    "SecuritySettings",
    "SlackSettings",
    "get_settings",
]
