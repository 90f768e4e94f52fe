"""Timer state machine: pure transitions, no I/O.

``transition(state, action)`` never raises and never removes entries from
``timers``. Department names are not checked against the configured set;
unknown names get their own entries.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from .state import IDLE_RECORD, TimerRecord, TrackerState

ADJUST_STEP_MINUTES = 15


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class Initialize:
    snapshot: Optional[TrackerState] = None
    today: Optional[str] = None


@dataclass(frozen=True)
class Increment:
    department: str


@dataclass(frozen=True)
class Toggle:
    department: str


@dataclass(frozen=True)
class AdjustTime:
    department: str
    direction: Direction


@dataclass(frozen=True)
class ChangeDate:
    date: str


Action = Union[Initialize, Increment, Toggle, AdjustTime, ChangeDate]


def quantize_adjust(seconds: int, direction: Direction) -> int:
    """Snap to the nearest quarter hour, then step one quarter hour.

    Whole minutes are rounded half-up to a multiple of 15 before the step,
    so anything below the quarter hour is dropped on every call. The result
    is in seconds and never negative.
    """
    minutes = seconds // 60
    # floor(minutes / 15 + 0.5) in integer arithmetic
    rounded = (2 * minutes + ADJUST_STEP_MINUTES) // (2 * ADJUST_STEP_MINUTES) * ADJUST_STEP_MINUTES
    step = ADJUST_STEP_MINUTES if direction == Direction.UP else -ADJUST_STEP_MINUTES
    return max(0, rounded + step) * 60


def _with_day(state: TrackerState, day: dict[str, TimerRecord]) -> TrackerState:
    return replace(state, timers={**state.timers, state.current_date: day})


def transition(state: TrackerState, action: Action) -> TrackerState:
    if isinstance(action, Initialize):
        if action.snapshot is not None:
            return action.snapshot
        return TrackerState(current_date=action.today or state.current_date, timers={})

    if isinstance(action, Increment):
        day = dict(state.day())
        current = day.get(action.department, IDLE_RECORD)
        day[action.department] = replace(current, time=current.time + 1)
        return _with_day(state, day)

    if isinstance(action, Toggle):
        day = {
            dept: replace(rec, is_active=False) if dept != action.department and rec.is_active else rec
            for dept, rec in state.day().items()
        }
        current = day.get(action.department, IDLE_RECORD)
        day[action.department] = replace(current, is_active=not current.is_active)
        return _with_day(state, day)

    if isinstance(action, AdjustTime):
        day = dict(state.day())
        current = day.get(action.department, IDLE_RECORD)
        day[action.department] = replace(current, time=quantize_adjust(current.time, action.direction))
        return _with_day(state, day)

    if isinstance(action, ChangeDate):
        return replace(state, current_date=action.date)

    return state
