"""Tick driver: turns wall-clock passage into Increment actions.

Runs as a coroutine job on an APScheduler ``AsyncIOScheduler`` so each
firing executes on the event loop, never in an executor thread.
"""

from __future__ import annotations

from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .clock import Clock
from .config import DEFAULT_TICK_MS
from .log import logger
from .reducer import Increment
from .tracker import Tracker

TICK_JOB_ID = "dept_tracker_tick"


class TickDriver:
    """Credits whole elapsed seconds to every running department.

    ``last_tick_ms`` only advances by the seconds actually credited, so a
    sub-second remainder carries over to the next firing.
    """

    def __init__(self, tracker: Tracker, clock: Clock, interval_ms: int = DEFAULT_TICK_MS,
                 now_ms: Optional[int] = None):
        self.tracker = tracker
        self.clock = clock
        self.interval_ms = interval_ms
        self.last_tick_ms: int = clock.now_ms() if now_ms is None else now_ms
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._scheduler is not None and not self._stopped

    def fire(self, now_ms: Optional[int] = None) -> int:
        """Process one firing. Returns the number of seconds credited per department."""
        if self._stopped:
            return 0
        if now_ms is None:
            now_ms = self.clock.now_ms()

        if now_ms < self.last_tick_ms:
            logger.warning(f"Clock moved back {self.last_tick_ms - now_ms}ms; restarting tick count")
            self.last_tick_ms = now_ms
            return 0

        elapsed = (now_ms - self.last_tick_ms) // 1000
        if elapsed > 0:
            for dept in self.tracker.state.active_departments():
                for _ in range(elapsed):
                    self.tracker.dispatch(Increment(dept))
            self.last_tick_ms += elapsed * 1000

        self.tracker.roll_over(self.clock.today())
        return elapsed

    async def _on_interval(self):
        self.fire()

    def start(self, scheduler: AsyncIOScheduler) -> None:
        self._scheduler = scheduler
        self._stopped = False
        self.last_tick_ms = self.clock.now_ms()
        scheduler.add_job(
            self._on_interval,
            trigger=IntervalTrigger(seconds=self.interval_ms / 1000),
            id=TICK_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Tick driver started ({self.interval_ms}ms)")

    def stop(self) -> None:
        self._stopped = True
        if self._scheduler is not None:
            if self._scheduler.get_job(TICK_JOB_ID):
                self._scheduler.remove_job(TICK_JOB_ID)
            self._scheduler = None
            logger.info("Tick driver stopped")
