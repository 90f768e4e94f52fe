"""Tracker: owns the state value and is the only place transitions happen.

Every dispatch runs one transition to completion, notifies listeners and
schedules a save. Saves run as asyncio tasks on the caller's loop and
coalesce: while one is in flight, later transitions only mark the tracker
dirty and the running task writes again with the newest state.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional, Sequence

from .clock import Clock, shift_date
from .config import department_for_key
from .log import logger
from .reducer import Action, AdjustTime, ChangeDate, Direction, Increment, Initialize, Toggle, transition
from .state import TrackerState, ensure_day
from .store import StateStore

Listener = Callable[[Action, TrackerState], None]


class Tracker:
    def __init__(self, departments: Sequence[str], clock: Clock, store: Optional[StateStore] = None):
        self.departments = tuple(departments)
        self.clock = clock
        self.store = store
        self._today = clock.today()
        self._state = TrackerState(current_date=self._today)
        self._listeners: list[Listener] = []
        self._dirty = False
        self._save_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def today(self) -> str:
        """Civil date seen at the last initialization or rollover."""
        return self._today

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    # ---- Lifecycle ----

    async def start(self) -> TrackerState:
        """Load the stored snapshot (if any) and initialize on today's date."""
        snapshot = await self.store.load() if self.store is not None else None
        return self.initialize(snapshot)

    def initialize(self, snapshot: Optional[TrackerState] = None) -> TrackerState:
        self.dispatch(Initialize(snapshot=snapshot, today=self.clock.today()))
        logger.info(f"Tracker initialized on {self._today} ({len(self._state.timers)} day(s) stored)")
        return self._state

    # ---- Dispatch ----

    def dispatch(self, action: Action) -> TrackerState:
        new_state = transition(self._state, action)
        if isinstance(action, Initialize):
            # A loaded snapshot always reopens on today's date
            self._today = self.clock.today()
            if new_state.current_date != self._today:
                new_state = transition(new_state, ChangeDate(self._today))
            if self._today not in new_state.timers:
                logger.info(f"Creating new timers for {self._today}")
            new_state = ensure_day(new_state, self._today, self.departments)
        elif isinstance(action, ChangeDate):
            new_state = ensure_day(new_state, new_state.current_date, self.departments)
        if new_state is self._state:
            return new_state
        self._state = new_state
        if isinstance(action, Initialize):
            logger.debug(f"Initialize: {len(new_state.timers)} day(s), current {new_state.current_date}")
        elif not isinstance(action, Increment):
            logger.debug(f"{type(action).__name__}: {action}")
        for listener in self._listeners:
            listener(action, new_state)
        self._schedule_save()
        return new_state

    # ---- Convenience actions for front-ends ----

    def toggle(self, department: str) -> TrackerState:
        return self.dispatch(Toggle(department))

    def adjust(self, department: str, direction: Direction | str) -> TrackerState:
        return self.dispatch(AdjustTime(department, Direction(direction)))

    def navigate(self, days: int) -> TrackerState:
        """Move ``current_date`` by ``days`` civil days (-1 previous, +1 next)."""
        return self.dispatch(ChangeDate(shift_date(self._state.current_date, days)))

    def toggle_key(self, key: str) -> Optional[str]:
        """Toggle the department bound to function key ``key``; None if unbound."""
        department = department_for_key(key, self.departments)
        if department is not None:
            self.toggle(department)
        return department

    # ---- Date rollover ----

    def roll_over(self, today: str) -> bool:
        """Move to a new civil day, carrying the running department with it.

        The department running on the previous real day is stopped there and
        started again on ``today``, even if another day is on screen. Returns
        True when a rollover happened.
        """
        if today == self._today:
            return False
        previous = self._today
        self._today = today
        running = self._state.active_departments(previous)
        if running:
            if self._state.current_date != previous:
                self.dispatch(ChangeDate(previous))
            for dept in running:
                if self._state.record(dept).is_active:
                    self.dispatch(Toggle(dept))
        self.dispatch(ChangeDate(today))
        for dept in running:
            self.dispatch(Toggle(dept))
        logger.info(f"Rolled over from {previous} to {today}" + (f", still running {running[0]}" if running else ""))
        return True

    # ---- Persistence ----

    def _schedule_save(self) -> None:
        if self.store is None:
            return
        self._dirty = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet; flush() writes it
            return
        self._ensure_save_task(loop)

    def _ensure_save_task(self, loop: asyncio.AbstractEventLoop) -> asyncio.Task:
        # Only one writer at a time, so saves land in dispatch order
        if self._save_task is None or self._save_task.done():
            self._save_task = loop.create_task(self._save_pending())
        return self._save_task

    async def _save_pending(self) -> None:
        while self._dirty:
            self._dirty = False
            await self.store.save(self._state)

    async def flush(self) -> None:
        """Wait until everything dispatched so far has been written."""
        if self.store is None:
            return
        while self._dirty or (self._save_task is not None and not self._save_task.done()):
            await self._ensure_save_task(asyncio.get_running_loop())
