"""
Daily polling and notification loop.

Two cooperating asyncio tasks share one :class:`FitbitTokenService`:

* the refresh loop redeems the refresh token on a fixed interval;
* the day loop waits for the morning window, polls the sleep endpoint until
  data shows up (or the cutoff hour passes) and posts one summary per date.

All waiting goes through a :class:`Clock` so tests can drive the loop with a
fake clock, and through a stop event so the daemon can shut down cleanly.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Protocol

from sleepbot.core.config import SchedulerSettings
from sleepbot.core.errors import SleepBotError, Unauthorized
from sleepbot.models.oauth import TokenRecord
from sleepbot.models.sleep import SleepSession
from sleepbot.services.sleep_summary import build_summary_messages
from sleepbot.services.token_store import TokenStoreError

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now(self) -> datetime: ...

    async def sleep(self, seconds: float) -> None: ...


class SystemClock:
    """Wall clock in the local timezone."""

    def now(self) -> datetime:
        return datetime.now().astimezone()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class TokenProvider(Protocol):
    async def snapshot(self) -> TokenRecord: ...

    async def refresh(self, *, stale_access_token: Optional[str] = None) -> TokenRecord: ...


class SleepFetcher(Protocol):
    async def fetch_sleep(
        self, access_token: str, user_id: str, day: date
    ) -> SleepSession: ...


class Notifier(Protocol):
    async def send(self, channel: str, text: str) -> None: ...


class SchedulerState(str, enum.Enum):
    WAITING_FOR_WINDOW = "waiting_for_window"
    POLLING_FOR_DATA = "polling_for_data"
    DISPATCHED = "dispatched"
    STOPPED = "stopped"


@dataclass
class DispatchState:
    """Remembers the last date a summary went out for."""

    last_dispatched: Optional[date] = None

    def already_sent(self, day: date) -> bool:
        return self.last_dispatched == day

    def mark_sent(self, day: date) -> None:
        self.last_dispatched = day


def next_window_start(now: datetime, start: time) -> datetime:
    """Next occurrence of ``start`` strictly after ``now``."""
    candidate = now.replace(
        hour=start.hour, minute=start.minute, second=0, microsecond=0
    )
    if now >= candidate:
        candidate += timedelta(days=1)
    if isinstance(candidate.tzinfo, timezone):
        # A fixed offset from astimezone() is stale across a DST change;
        # resolve the target wall-clock time in the local zone again.
        candidate = candidate.replace(tzinfo=None).astimezone()
    return candidate


class DailyScheduler:
    """Poll Fitbit once the day window opens and post one summary per date."""

    def __init__(
        self,
        *,
        token_service: TokenProvider,
        sleep_client: SleepFetcher,
        notifier: Notifier,
        channel: str,
        settings: SchedulerSettings,
        clock: Optional[Clock] = None,
        skip_first_wait: bool = False,
        dispatch_state: Optional[DispatchState] = None,
    ) -> None:
        self._tokens = token_service
        self._sleep = sleep_client
        self._notifier = notifier
        self._channel = channel
        self._settings = settings
        self._clock = clock or SystemClock()
        self._skip_first_wait = skip_first_wait
        self.dispatch_state = dispatch_state or DispatchState()
        self.state = SchedulerState.WAITING_FOR_WINDOW
        self._stop_event = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Ask both loops to exit at their next wait point."""
        logger.info("Stop requested")
        self._stop_event.set()

    async def run(self) -> None:
        """Run the refresh loop in the background and the day loop in the foreground."""
        refresh_task = asyncio.create_task(self.run_refresh_loop(), name="token-refresh")
        try:
            await self.run_day_loop()
        finally:
            refresh_task.cancel()
            try:
                await refresh_task
            except asyncio.CancelledError:
                pass
            self.state = SchedulerState.STOPPED

    async def run_refresh_loop(self) -> None:
        interval = self._settings.refresh_interval_seconds
        while not self.stopped:
            await self._pause(interval)
            if self.stopped:
                break
            await self.refresh_once()

    async def refresh_once(self, *, stale_access_token: Optional[str] = None) -> bool:
        """Refresh the token; failures are logged and the old token stays in use."""
        try:
            await self._tokens.refresh(stale_access_token=stale_access_token)
        except TokenStoreError as exc:
            logger.error("Token refreshed but saving it failed, new token kept in memory: %s", exc)
            return True
        except SleepBotError as exc:
            logger.warning("Token refresh failed, keeping current token: %s", exc)
            return False
        except Exception:  # pylint: disable=broad-except
            logger.exception("Unexpected error while refreshing token")
            return False
        return True

    async def run_day_loop(self) -> None:
        first = True
        while not self.stopped:
            self.state = SchedulerState.WAITING_FOR_WINDOW
            if first and self._skip_first_wait:
                logger.info("Test mode: skipping wait for the day window")
            else:
                await self.wait_for_window()
            first = False
            if self.stopped:
                break
            try:
                await self.run_day()
            except Exception:  # pylint: disable=broad-except
                logger.exception("Day loop iteration failed")

    async def wait_for_window(self) -> None:
        now = self._clock.now()
        target = next_window_start(now, self._settings.day_start)
        logger.info("Sleeping until %s", target.isoformat())
        await self._pause((target - now).total_seconds())

    async def run_day(self) -> bool:
        """Poll until the summary is sent or the cutoff hour is reached.

        Returns ``True`` when the current date ends up dispatched.
        """
        self.state = SchedulerState.POLLING_FOR_DATA
        while not self.stopped:
            now = self._clock.now()
            today = now.date()
            if now.hour >= self._settings.cutoff_hour:
                logger.info("Cutoff reached without sleep data; abandoning %s", today)
                return False
            if self.dispatch_state.already_sent(today):
                logger.info("Already sent sleep data for %s", today)
                self.state = SchedulerState.DISPATCHED
                return True
            if await self.poll_once(today):
                return True
            await self._pause(self._settings.poll_interval_seconds)
        return False

    async def poll_once(self, today: date) -> bool:
        """Fetch ``today`` once and dispatch when data is available."""
        try:
            token = await self._tokens.snapshot()
            session = await self._sleep.fetch_sleep(token.access_token, token.user_id, today)
        except Unauthorized:
            logger.warning("Sleep endpoint rejected the access token; refreshing")
            await self.refresh_once(stale_access_token=token.access_token)
            return False
        except SleepBotError as exc:
            logger.warning("Error getting sleep data for %s: %s", today, exc)
            return False
        except Exception:  # pylint: disable=broad-except
            logger.exception("Unexpected error getting sleep data for %s", today)
            return False

        if session.is_empty:
            logger.info(
                "No sleep data yet for %s, retrying in %.0f seconds",
                today,
                self._settings.poll_interval_seconds,
            )
            return False

        logger.info("Found sleep data for %s", today)
        return await self.dispatch(session)

    async def dispatch(self, session: SleepSession) -> bool:
        """Send the summary; the date is marked only if every message went out."""
        if self.dispatch_state.already_sent(session.date):
            return True
        messages = build_summary_messages(
            session, goal_hours=self._settings.goal_hours, now=self._clock.now()
        )
        for text in messages:
            try:
                await self._notifier.send(self._channel, text)
            except SleepBotError as exc:
                logger.warning("Error sending summary for %s: %s", session.date_key, exc)
                return False
            except Exception:  # pylint: disable=broad-except
                logger.exception("Unexpected error sending summary for %s", session.date_key)
                return False
        self.dispatch_state.mark_sent(session.date)
        self.state = SchedulerState.DISPATCHED
        logger.info("Dispatched sleep summary for %s", session.date_key)
        return True

    async def _pause(self, seconds: float) -> None:
        """Sleep on the clock, waking early if a stop is requested."""
        if seconds <= 0 or self.stopped:
            return
        sleeper = asyncio.ensure_future(self._clock.sleep(seconds))
        stopper = asyncio.ensure_future(self._stop_event.wait())
        try:
            await asyncio.wait({sleeper, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, stopper):
                if not task.done():
                    task.cancel()


__all__ = [
    "Clock",
    "DailyScheduler",
    "DispatchState",
    "SchedulerState",
    "SystemClock",
    "next_window_start",
]
