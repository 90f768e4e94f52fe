from __future__ import annotations

from dataclasses import dataclass

import pytest

from dept_tracker.config import DEFAULT_DEPARTMENTS


@dataclass
class FakeClock:
    """Manually controlled clock: set ``ms`` and ``date`` directly."""

    ms: int = 0
    date: str = "2024-01-01"

    def now_ms(self) -> int:
        return self.ms

    def today(self) -> str:
        return self.date


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def departments():
    return DEFAULT_DEPARTMENTS


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "tracker.db"
