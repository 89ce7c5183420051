"""Expose constructed client wrappers."""

from .fitbit_auth import FitbitOAuthClient
from .fitbit_sleep import FitbitSleepClient
from .slack import SlackClient

__all__ = [
    "FitbitOAuthClient",
    "FitbitSleepClient",
    "SlackClient",
]
