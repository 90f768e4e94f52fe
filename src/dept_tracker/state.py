"""Tracker data model and its persisted JSON snapshot.

State values are immutable: transitions build new mappings and share the
untouched ones. The snapshot keeps the camelCase keys of the stored format
(``currentDate``, ``isActive``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt


@dataclass(frozen=True)
class TimerRecord:
    is_active: bool = False
    time: int = 0  # seconds


IDLE_RECORD = TimerRecord()

DayTimers = Mapping[str, TimerRecord]


@dataclass(frozen=True)
class TrackerState:
    current_date: str
    timers: Mapping[str, DayTimers] = field(default_factory=dict)

    def day(self, civil_date: str | None = None) -> DayTimers:
        """Records for a date (``current_date`` by default); empty when absent."""
        return self.timers.get(civil_date or self.current_date, {})

    def record(self, department: str, civil_date: str | None = None) -> TimerRecord:
        return self.day(civil_date).get(department, IDLE_RECORD)

    def active_departments(self, civil_date: str | None = None) -> list[str]:
        return [dept for dept, rec in self.day(civil_date).items() if rec.is_active]

    def day_total(self, civil_date: str | None = None) -> int:
        return sum(rec.time for rec in self.day(civil_date).values())

    def to_dict(self) -> dict:
        return {
            "currentDate": self.current_date,
            "timers": {
                day: {
                    dept: {"isActive": rec.is_active, "time": rec.time}
                    for dept, rec in records.items()
                }
                for day, records in self.timers.items()
            },
        }


def create_day_timers(departments: Sequence[str]) -> dict[str, TimerRecord]:
    """A fresh day: every department present, zeroed and inactive."""
    return {dept: IDLE_RECORD for dept in departments}


def ensure_day(state: TrackerState, civil_date: str, departments: Sequence[str]) -> TrackerState:
    """Return ``state`` with ``timers[civil_date]`` present, creating it if missing."""
    if civil_date in state.timers:
        return state
    return TrackerState(
        current_date=state.current_date,
        timers={**state.timers, civil_date: create_day_timers(departments)},
    )


# ---- Persisted snapshot ----


class RecordSnapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    is_active: bool = Field(default=False, alias="isActive")
    time: NonNegativeInt = 0


class StateSnapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    current_date: str = Field(alias="currentDate")
    timers: dict[str, dict[str, RecordSnapshot]] = Field(default_factory=dict)


def encode_snapshot(state: TrackerState) -> str:
    return StateSnapshot.model_validate(state.to_dict()).model_dump_json(by_alias=True)


def decode_snapshot(payload: str | bytes) -> TrackerState:
    """Parse a stored snapshot.

    Raises pydantic.ValidationError for malformed JSON or a payload that does
    not match the snapshot schema.
    """
    snapshot = StateSnapshot.model_validate_json(payload)
    return TrackerState(
        current_date=snapshot.current_date,
        timers={
            day: {
                dept: TimerRecord(is_active=rec.is_active, time=rec.time)
                for dept, rec in records.items()
            }
            for day, records in snapshot.timers.items()
        },
    )
