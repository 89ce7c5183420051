"""Public schema exports."""

from .fitbit import SleepLogEntry, SleepLogResponse, TokenResponse
from .slack import SlackMessage, SlackResponse

__all__ = [
    "SlackMessage",
    "SlackResponse",
    "SleepLogEntry",
    "SleepLogResponse",
    "TokenResponse",
]
