"""Render the daily sleep summary messages."""

from __future__ import annotations

from datetime import datetime

from sleepbot.models.sleep import MILLIS_PER_HOUR, SleepSession

BAR_WIDTH = 10
FILLED_BLOCK = "█"
EMPTY_BLOCK = "░"


def render_sleep_bar(slept_ms: int, goal_hours: float, width: int = BAR_WIDTH) -> str:
    """Fixed-width bar proportional to the share of the goal reached."""
    if goal_hours <= 0:
        raise ValueError("goal_hours must be positive.")
    percent = min(100.0, (slept_ms / MILLIS_PER_HOUR) / goal_hours * 100)
    filled = min(width, int(percent * width // 100))
    return FILLED_BLOCK * filled + EMPTY_BLOCK * (width - filled)


def _clock_time(value: datetime) -> str:
    return value.strftime("%I:%M %p").lstrip("0")


def build_summary_messages(
    session: SleepSession, *, goal_hours: float, now: datetime
) -> list[str]:
    """Return the sentence and bar messages posted for ``session``."""
    start, end = session.span(fallback=now)
    hours = session.total_hours
    sentence = (
        f"I slept from {_clock_time(start)} -> {_clock_time(end)} "
        f"for a total of {hours:.1f} hours!"
    )
    bar = render_sleep_bar(session.total_duration_ms, goal_hours)
    return [sentence, f"`{bar}` ({hours:.1f}h/{goal_hours:.1f}h)"]


__all__ = ["BAR_WIDTH", "build_summary_messages", "render_sleep_bar"]
