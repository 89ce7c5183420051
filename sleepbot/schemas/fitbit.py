"""Wire schemas for the Fitbit Web API responses the bot consumes."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TokenResponse(BaseModel):
    """Body returned by ``POST /oauth2/token``."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(..., min_length=1)
    refresh_token: str = Field(..., min_length=1)
    expires_in: int
    token_type: str = "Bearer"
    user_id: str = Field(..., min_length=1)


class SleepLogEntry(BaseModel):
    """One entry of the ``sleep`` array."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    log_id: Optional[int] = Field(None, alias="logId")
    date_of_sleep: Optional[str] = Field(None, alias="dateOfSleep")
    start_time: Optional[str] = Field(None, alias="startTime")
    end_time: Optional[str] = Field(None, alias="endTime")
    duration: int = Field(..., ge=0, description="Duration in milliseconds.")
    minutes_asleep: Optional[int] = Field(None, alias="minutesAsleep")
    is_main_sleep: Optional[bool] = Field(None, alias="isMainSleep")


class SleepLogResponse(BaseModel):
    """Body returned by ``GET /1.2/user/{id}/sleep/date/{date}.json``."""

    model_config = ConfigDict(extra="ignore")

    sleep: list[SleepLogEntry]


__all__ = ["SleepLogEntry", "SleepLogResponse", "TokenResponse"]
