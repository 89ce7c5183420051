"""Service layer exports."""

from .fitbit_tokens import FitbitTokenService
from .pkce import derive_challenge, generate_pair, generate_verifier
from .scheduler import DailyScheduler, DispatchState, SchedulerState, SystemClock
from .sleep_summary import build_summary_messages, render_sleep_bar
from .token_cipher import TokenCipherService
from .token_store import TokenNotFoundError, TokenStore, TokenStoreError

__all__ = [
    "DailyScheduler",
    "DispatchState",
    "FitbitTokenService",
    "SchedulerState",
    "SystemClock",
    "TokenCipherService",
    "TokenNotFoundError",
    "TokenStore",
    "TokenStoreError",
    "build_summary_messages",
    "derive_challenge",
    "generate_pair",
    "generate_verifier",
    "render_sleep_bar",
]
