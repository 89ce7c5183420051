"""Schemas for the Slack ``chat.postMessage`` call."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class SlackMessage(BaseModel):
    channel: str
    text: str


class SlackResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ok: bool
    error: Optional[str] = None


__all__ = ["SlackMessage", "SlackResponse"]
