"""Periodic background update checks.

Cycles run one at a time: the wait for the next cycle starts only after the
previous cycle finished, so two cycles never race on the badge.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from .models import ManagementSettings

if TYPE_CHECKING:
    from .models import CheckSummary
    from .orchestrator import UpdateChecker

logger = structlog.get_logger(__name__)

SECONDS_PER_MINUTE = 60


def initial_delay_minutes(period_minutes: int, last_run: float, now: float) -> int:
    """Minutes until the first check after startup.

    Args:
        period_minutes: Configured check period.
        last_run: Epoch seconds of the last scheduled check (0 if never).
        now: Current epoch seconds.

    Returns:
        The remainder of the period, at least 1 minute.

    Examples:
        >>> initial_delay_minutes(60, 0, 10_000)
        1
        >>> initial_delay_minutes(60, 1000, 1000 + 20 * 60)
        40
    """
    elapsed_minutes = int((now - last_run) // SECONDS_PER_MINUTE)
    return max(1, period_minutes - elapsed_minutes)


class UpdateScheduler:
    """Runs update-check cycles every ``update_period_in_minutes``."""

    def __init__(
        self,
        checker: UpdateChecker,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the scheduler.

        Args:
            checker: Checker running the cycles; its storage holds the schedule state.
            clock: Returns the current epoch time in seconds.
        """
        self.checker = checker
        self.storage = checker.storage
        self._clock = clock
        self._log = logger.bind(component="scheduler")

    async def restore_badge(self) -> None:
        """Re-display the remembered badge text, e.g. after a restart."""
        text = await self.storage.get_badge_text()
        await self.storage.set_badge_text(text)

    async def current_settings(self) -> ManagementSettings:
        settings = await self.storage.get_settings(ManagementSettings())
        return await self.storage.get_managed_overrides(settings)

    async def run_once(self, **callbacks: Any) -> CheckSummary | None:
        """Run one scheduled cycle if automatic updates are enabled.

        Args:
            **callbacks: Passed on to ``UpdateChecker.check_for_updates``.

        Returns:
            The cycle summary, or None if automatic updates are disabled.
        """
        settings = await self.current_settings()
        if not settings.auto_update:
            self._log.info("scheduled_check_skipped", reason="auto_update_disabled")
            return None

        summary = await self.checker.check_for_updates(**callbacks)
        await self.storage.set_last_scheduled_update(self._clock())
        return summary

    async def run_forever(self, stop: asyncio.Event, **callbacks: Any) -> None:
        """Run scheduled cycles until ``stop`` is set.

        Args:
            stop: Event ending the loop.
            **callbacks: Passed on to every cycle.
        """
        await self.restore_badge()
        settings = await self.current_settings()
        last_run = await self.storage.get_last_scheduled_update()
        period = settings.update_period_in_minutes
        delay = initial_delay_minutes(period, last_run, self._clock())

        while True:
            self._log.info("next_check_scheduled", delay_minutes=delay)
            if await self._wait(delay * SECONDS_PER_MINUTE, stop):
                break
            try:
                await self.run_once(**callbacks)
                period = (await self.current_settings()).update_period_in_minutes
            except Exception:
                # A failed cycle keeps the last known period
                self._log.exception("scheduled_check_failed")
            delay = period

        self._log.info("scheduler_stopped")

    @staticmethod
    async def _wait(seconds: float, stop: asyncio.Event) -> bool:
        """Wait ``seconds`` or until stopped. Returns True if stopped."""
        try:
            await asyncio.wait_for(stop.wait(), timeout=seconds)
        except TimeoutError:
            return False
        return True
