"""Per-department daily time tracker with one running timer at a time."""

from .reducer import (
    AdjustTime,
    ChangeDate,
    Direction,
    Increment,
    Initialize,
    Toggle,
    quantize_adjust,
    transition,
)
from .state import TimerRecord, TrackerState, create_day_timers, ensure_day
from .store import StateStore
from .ticker import TickDriver
from .tracker import Tracker

__all__ = [
    "AdjustTime",
    "ChangeDate",
    "Direction",
    "Increment",
    "Initialize",
    "StateStore",
    "TickDriver",
    "TimerRecord",
    "Toggle",
    "Tracker",
    "TrackerState",
    "create_day_timers",
    "ensure_day",
    "quantize_adjust",
    "transition",
]
