"""Configuration for the tracker: departments, time zone, storage, tick period."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv
from zoneinfo import ZoneInfoNotFoundError

from .clock import resolve_timezone

DEFAULT_DEPARTMENTS: tuple[str, ...] = (
    "Homelessness",
    "Public Safety",
    "E&E",
    "Housing First",
    "DCE",
    "I-REN",
    "Transportation",
    "ACCESS",
    "Arts & Music",
    "CV Link",
    "CV Sync",
    "CVCC",
)
DEFAULT_TIMEZONE = "America/Los_Angeles"
DEFAULT_DB_PATH = Path.home() / ".dept-tracker" / "tracker.db"
DEFAULT_TICK_MS = 1000
STATE_KEY = "timeTrackerState"


@dataclass
class TrackerConfig:
    """Settings shared by the tracker, the tick driver and the CLI.

    ``departments`` is ordered: index ``n - 1`` is bound to function key ``F<n>``.
    """

    departments: tuple[str, ...] = DEFAULT_DEPARTMENTS
    timezone: str = DEFAULT_TIMEZONE
    db_path: Path = field(default_factory=lambda: DEFAULT_DB_PATH)
    tick_interval_ms: int = DEFAULT_TICK_MS
    verbose: bool = False

    def validate(self) -> None:
        if not self.departments:
            raise click.ClickException("At least one department must be configured.")
        seen = set()
        for dept in self.departments:
            if not dept:
                raise click.ClickException("Department names must not be empty.")
            if dept in seen:
                raise click.ClickException(f"Duplicate department '{dept}'.")
            seen.add(dept)
        try:
            resolve_timezone(self.timezone)
        except ZoneInfoNotFoundError:
            raise click.ClickException(f"Unknown timezone '{self.timezone}'.")
        if self.tick_interval_ms <= 0:
            raise click.ClickException("Tick interval must be a positive number of milliseconds.")


def _parse_departments(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def load_config(env_file: Optional[Path] = None, validate: bool = True) -> TrackerConfig:
    """Build a config from the environment, loading ``.env`` first when present.

    Pass ``validate=False`` when overrides are applied afterwards; the caller
    then runs ``config.validate()`` itself.
    """
    if env_file is not None:
        load_dotenv(env_file)
    elif Path(".env").exists():
        load_dotenv(Path(".env"))

    departments = DEFAULT_DEPARTMENTS
    raw_departments = os.environ.get("DEPT_TRACKER_DEPARTMENTS")
    if raw_departments:
        departments = _parse_departments(raw_departments)

    raw_tick = os.environ.get("DEPT_TRACKER_TICK_MS", str(DEFAULT_TICK_MS))
    try:
        tick_ms = int(raw_tick)
    except ValueError:
        raise click.ClickException(f"DEPT_TRACKER_TICK_MS must be an integer, got '{raw_tick}'.")

    db_path = os.environ.get("DEPT_TRACKER_DB")
    config = TrackerConfig(
        departments=departments,
        timezone=os.environ.get("DEPT_TRACKER_TIMEZONE", DEFAULT_TIMEZONE),
        db_path=Path(db_path).expanduser() if db_path else DEFAULT_DB_PATH,
        tick_interval_ms=tick_ms,
        verbose=os.environ.get("DEPT_TRACKER_VERBOSE", "false").lower() == "true",
    )
    if validate:
        config.validate()
    return config


def department_for_key(key: str, departments: tuple[str, ...]) -> Optional[str]:
    """Map ``F<n>`` to the department at index ``n - 1``; anything else is None."""
    key = key.strip().upper()
    if not key.startswith("F") or not key[1:].isdigit():
        return None
    index = int(key[1:]) - 1
    if 0 <= index < len(departments):
        return departments[index]
    return None
