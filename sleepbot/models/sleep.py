"""
Aggregated view of one day of Fitbit sleep logs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

from sleepbot.schemas.fitbit import SleepLogEntry

logger = logging.getLogger(__name__)

FITBIT_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"
MILLIS_PER_HOUR = 1000 * 60 * 60


def parse_fitbit_time(value: Optional[str]) -> Optional[datetime]:
    """Parse ``2024-01-01T23:00:00.000``; ``None`` when absent or malformed."""
    if not value:
        return None
    try:
        return datetime.strptime(value, FITBIT_TIME_FORMAT)
    except ValueError:
        logger.warning("Unparseable sleep timestamp %r", value)
        return None


@dataclass(frozen=True)
class SleepSession:
    """All sleep entries Fitbit reports for ``date``."""

    date: date
    entries: tuple[SleepLogEntry, ...] = ()

    @classmethod
    def from_entries(cls, day: date, entries: Iterable[SleepLogEntry]) -> "SleepSession":
        return cls(date=day, entries=tuple(entries))

    @property
    def date_key(self) -> str:
        return self.date.isoformat()

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def total_duration_ms(self) -> int:
        return sum(entry.duration for entry in self.entries)

    @property
    def total_hours(self) -> float:
        return self.total_duration_ms / MILLIS_PER_HOUR

    def span(self, fallback: datetime) -> tuple[datetime, datetime]:
        """Earliest start and latest end across entries.

        Boundaries that cannot be parsed from any entry are replaced by
        ``fallback`` so a summary can still be produced.
        """
        starts = [parse_fitbit_time(entry.start_time) for entry in self.entries]
        ends = [parse_fitbit_time(entry.end_time) for entry in self.entries]
        valid_starts = [value for value in starts if value is not None]
        valid_ends = [value for value in ends if value is not None]
        start = min(valid_starts) if valid_starts else fallback
        end = max(valid_ends) if valid_ends else fallback
        return start, end


__all__ = ["FITBIT_TIME_FORMAT", "SleepSession", "parse_fitbit_time"]
