"""Periodic refresh driver.

States: IDLE -> SCHEDULED -> CHECKING -> SCHEDULED (loop). At most one
cycle runs at a time; a check requested while one is running is dropped,
not queued. ``stop()`` cancels the schedule but lets an in-flight cycle
finish and commit.

The sleep function is injectable so tests can drive time by hand.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from costsync.config import MIN_REFRESH_INTERVAL_MS
from costsync.pipeline import CycleResult, SyncPipeline

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class SchedulerState(str, Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    CHECKING = "checking"


class RefreshScheduler:
    """Re-runs the sync pipeline on a fixed interval.

    Example:
        >>> scheduler = RefreshScheduler(pipeline)
        >>> scheduler.start(interval_ms=5000, initial_delay_ms=1000)
        >>> await scheduler.check_now()  # manual refresh
        >>> scheduler.stop()
    """

    def __init__(
        self,
        pipeline: SyncPipeline,
        sleep: Sleep = asyncio.sleep,
        min_interval_ms: int = MIN_REFRESH_INTERVAL_MS,
    ):
        self.pipeline = pipeline
        self.min_interval_ms = min_interval_ms
        self.interval_ms: int | None = None
        self._sleep = sleep
        self._loop_task: asyncio.Task | None = None
        self._cycles: set[asyncio.Task] = set()
        self._checking = False
        self.last_result: CycleResult | None = None

    @property
    def state(self) -> SchedulerState:
        if self._checking:
            return SchedulerState.CHECKING
        if self.running:
            return SchedulerState.SCHEDULED
        return SchedulerState.IDLE

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def checking(self) -> bool:
        return self._checking

    def start(self, interval_ms: int = 5000, initial_delay_ms: int = 1000) -> bool:
        """Start polling; a second start while running is ignored.

        Args:
            interval_ms: Delay between cycles, raised to the minimum floor
            initial_delay_ms: Delay before the first cycle

        Returns:
            True if a new schedule was started
        """
        if self.running:
            return False

        self.interval_ms = max(int(interval_ms), self.min_interval_ms)
        initial_delay_ms = max(int(initial_delay_ms), 0)
        logger.info(f"Auto-refresh every {self.interval_ms / 1000:g}s")
        self._loop_task = asyncio.get_running_loop().create_task(
            self._run(initial_delay_ms / 1000)
        )
        return True

    def stop(self) -> None:
        """Cancel future cycles; an in-flight cycle still completes."""
        if self._loop_task is not None:
            self._loop_task.cancel()
            self._loop_task = None
            logger.info("Auto-refresh stopped")

    async def check_now(self) -> CycleResult | None:
        """Run one cycle immediately.

        Returns:
            The cycle result, or None when a cycle was already running
        """
        if self._checking:
            logger.debug("Refresh already in progress, check dropped")
            return None

        self._checking = True
        try:
            self.last_result = await self.pipeline.run_cycle()
            return self.last_result
        finally:
            self._checking = False

    async def wait_idle(self) -> None:
        """Wait for every in-flight scheduled cycle to finish."""
        while self._cycles:
            await asyncio.gather(*list(self._cycles), return_exceptions=True)

    async def _run(self, initial_delay: float) -> None:
        await self._sleep(initial_delay)
        while True:
            cycle = asyncio.get_running_loop().create_task(self.check_now())
            self._cycles.add(cycle)
            cycle.add_done_callback(self._cycles.discard)
            # Shielded so stop() does not abort the cycle
            await asyncio.shield(cycle)
            await self._sleep(self.interval_ms / 1000)
