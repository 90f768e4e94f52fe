"""Clock source: current instant and civil date in one fixed time zone."""

from __future__ import annotations

import time
from datetime import date, datetime, timedelta
from typing import Protocol

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

TZ_SHORTHANDS = {
    "UTC": "UTC",
    "GMT": "Etc/GMT",
    "EST": "America/New_York",
    "EDT": "America/New_York",
    "CST": "America/Chicago",
    "CDT": "America/Chicago",
    "MST": "America/Denver",
    "MDT": "America/Denver",
    "PST": "America/Los_Angeles",
    "PDT": "America/Los_Angeles",
    "CET": "Europe/Paris",
    "CEST": "Europe/Berlin",
}


def resolve_timezone(tz_name: str) -> ZoneInfo:
    """Return a ZoneInfo, allowing common shorthands like UTC/PST."""
    normalized = tz_name.strip()
    try:
        return ZoneInfo(normalized)
    except (ZoneInfoNotFoundError, ValueError):
        pass

    alias = TZ_SHORTHANDS.get(normalized.upper())
    if alias:
        return ZoneInfo(alias)

    raise ZoneInfoNotFoundError(normalized)


def shift_date(civil_date: str, days: int) -> str:
    """Move a YYYY-MM-DD string by whole calendar days."""
    return (date.fromisoformat(civil_date) + timedelta(days=days)).isoformat()


class Clock(Protocol):
    def now_ms(self) -> int:
        """Wall-clock instant in integer milliseconds."""

    def today(self) -> str:
        """Current civil date as YYYY-MM-DD in the configured zone."""


class SystemClock:
    """Production clock backed by time.time() and the configured zone."""

    def __init__(self, tz_name: str):
        self.tz = resolve_timezone(tz_name)

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def today(self) -> str:
        return datetime.now(self.tz).date().isoformat()
