"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from sleepbot.schemas.fitbit import SleepLogEntry


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def make_entry():
    """Build a sleep log entry from the camelCase wire fields."""

    def _make(start: str | None, end: str | None, duration_ms: int, **extra) -> SleepLogEntry:
        payload = {"startTime": start, "endTime": end, "duration": duration_ms}
        payload.update(extra)
        return SleepLogEntry.model_validate(payload)

    return _make
