"""
Fixed-rate update scheduler.

Runs one cycle as soon as it is started, then fires every ``interval``
seconds. A fire that lands while a cycle is still in flight is skipped,
so cycles never overlap. A failed cycle is logged and recorded; it never
stops the timer or affects the next cycle.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from signage_feed.models import CycleState, SchedulerStatus

logger = logging.getLogger(__name__)

__all__ = ["CycleState", "UpdateScheduler"]


class UpdateScheduler:
    """
    Owns the recurring timer and the in-flight cycle task.

    - start(): run one cycle now, then one per interval.
    - stop(): no new cycles; an in-flight cycle is left to finish.
    - run_cycle(): one guarded cycle, never raises.
    """

    def __init__(
        self, cycle: Callable[[], Awaitable[Any]], interval: float
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._cycle = cycle
        self._interval = interval
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: Optional[asyncio.Task] = None
        self._state = CycleState.idle
        self._stats = {
            "cycles_started": 0,
            "cycles_succeeded": 0,
            "cycles_failed": 0,
            "cycles_skipped": 0,
        }
        self._last_success_at: Optional[datetime] = None
        self._last_error: Optional[str] = None
        self._last_error_at: Optional[datetime] = None

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def running(self) -> bool:
        """True while the timer is armed."""
        return self._timer is not None and not self._timer.done()

    def start(self) -> None:
        """Start the timer. Must be called from within a running event loop."""
        if self._timer is not None:
            raise RuntimeError("Scheduler already started")
        logger.info("Starting auto-update: every %s seconds", self._interval)
        self._timer = asyncio.get_running_loop().create_task(self._tick())

    async def stop(self, wait: bool = True) -> None:
        """
        Cancel the timer so no further cycles start.

        A cycle already in flight is not interrupted; with ``wait`` the call
        returns once it has settled.
        """
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            try:
                await timer
            except asyncio.CancelledError:
                pass
            logger.info("Auto-update stopped")

        if wait and self._in_flight is not None:
            await asyncio.wait([self._in_flight])

    async def run_cycle(self) -> bool:
        """
        Run the cycle once.

        Returns True on success, False if it failed or was skipped because
        another cycle is running. Exceptions are logged, not raised.
        """
        if self._state is CycleState.cycle_running:
            self._stats["cycles_skipped"] += 1
            logger.warning("Update cycle still running; skipping this one")
            return False

        self._state = CycleState.cycle_running
        self._stats["cycles_started"] += 1
        try:
            await self._cycle()
        except Exception as exc:
            self._stats["cycles_failed"] += 1
            self._last_error = str(exc)
            self._last_error_at = datetime.now(timezone.utc)
            logger.error("Update cycle failed: %s", exc)
            return False
        finally:
            self._state = CycleState.idle

        self._stats["cycles_succeeded"] += 1
        self._last_success_at = datetime.now(timezone.utc)
        return True

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            running=self.running,
            state=self._state,
            interval_seconds=self._interval,
            last_success_at=self._last_success_at,
            last_error=self._last_error,
            last_error_at=self._last_error_at,
            **self._stats,
        )

    def _launch(self) -> None:
        if self._in_flight is not None and not self._in_flight.done():
            self._stats["cycles_skipped"] += 1
            logger.warning(
                "Previous update cycle still in flight after %ss; skipping",
                self._interval,
            )
            return
        self._in_flight = asyncio.get_running_loop().create_task(self.run_cycle())

    async def _tick(self) -> None:
        loop = asyncio.get_running_loop()
        self._launch()
        next_fire = loop.time()
        while True:
            next_fire += self._interval
            await asyncio.sleep(max(0.0, next_fire - loop.time()))
            self._launch()
