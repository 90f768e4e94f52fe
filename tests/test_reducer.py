"""Unit tests for the timer state machine: pure transitions, no I/O."""

import pytest

from dept_tracker.reducer import (
    AdjustTime,
    ChangeDate,
    Direction,
    Increment,
    Initialize,
    Toggle,
    quantize_adjust,
    transition,
)
from dept_tracker.state import TimerRecord, TrackerState, create_day_timers

DATE = "2024-01-01"


def fresh_state(departments) -> TrackerState:
    return TrackerState(current_date=DATE, timers={DATE: create_day_timers(departments)})


def active(state: TrackerState) -> list[str]:
    return state.active_departments()


# ---- Toggle / exclusivity ----

class TestToggle:
    def test_starts_department(self, departments):
        state = transition(fresh_state(departments), Toggle("DCE"))
        assert active(state) == ["DCE"]

    def test_starting_one_stops_the_other(self, departments):
        state = transition(fresh_state(departments), Toggle("DCE"))
        state = transition(state, Toggle("CVCC"))
        assert active(state) == ["CVCC"]
        assert state.record("DCE").is_active is False

    def test_toggle_sequence_never_has_two_running(self, departments):
        state = fresh_state(departments)
        for dept in ["E&E", "ACCESS", "ACCESS", "I-REN", "E&E", "Homelessness", "Homelessness", "CV Link"]:
            state = transition(state, Toggle(dept))
            assert len(active(state)) <= 1

    def test_toggle_twice_restores_flag(self, departments):
        state = transition(fresh_state(departments), Toggle("DCE"))
        state = transition(state, Toggle("ACCESS"))
        state = transition(state, Toggle("ACCESS"))
        assert state.record("ACCESS").is_active is False
        assert active(state) == []

    def test_retoggle_running_leaves_nothing_running(self, departments):
        state = transition(fresh_state(departments), Toggle("DCE"))
        state = transition(state, Toggle("DCE"))
        assert active(state) == []

    def test_keeps_time(self, departments):
        state = fresh_state(departments)
        for _ in range(5):
            state = transition(state, Increment("DCE"))
        state = transition(state, Toggle("DCE"))
        assert state.record("DCE") == TimerRecord(is_active=True, time=5)

    def test_only_touches_current_date(self, departments):
        state = transition(fresh_state(departments), Toggle("DCE"))
        state = transition(state, ChangeDate("2024-01-02"))
        state = transition(state, Toggle("CVCC"))
        assert state.active_departments(DATE) == ["DCE"]
        assert state.active_departments("2024-01-02") == ["CVCC"]

    def test_missing_day_is_created(self):
        state = transition(TrackerState(current_date=DATE), Toggle("DCE"))
        assert state.timers[DATE] == {"DCE": TimerRecord(is_active=True, time=0)}

    def test_does_not_mutate_input(self, departments):
        before = fresh_state(departments)
        transition(before, Toggle("DCE"))
        assert active(before) == []


# ---- Increment ----

class TestIncrement:
    def test_adds_exactly_one(self, departments):
        state = fresh_state(departments)
        for expected in range(1, 6):
            state = transition(state, Increment("E&E"))
            assert state.record("E&E").time == expected

    def test_works_while_inactive(self, departments):
        state = transition(fresh_state(departments), Increment("DCE"))
        assert state.record("DCE") == TimerRecord(is_active=False, time=1)

    def test_keeps_active_flag(self, departments):
        state = transition(fresh_state(departments), Toggle("DCE"))
        state = transition(state, Increment("DCE"))
        assert state.record("DCE") == TimerRecord(is_active=True, time=1)

    def test_without_record_creates_one(self):
        state = transition(TrackerState(current_date=DATE), Increment("DCE"))
        assert state.timers[DATE]["DCE"] == TimerRecord(is_active=False, time=1)

    def test_unknown_department_gets_entry(self, departments):
        state = transition(fresh_state(departments), Increment("Typo Dept"))
        assert state.record("Typo Dept").time == 1
        assert len(state.day()) == len(departments) + 1


# ---- AdjustTime ----

class TestAdjust:
    @pytest.mark.parametrize(
        "seconds, direction, expected",
        [
            (37, Direction.UP, 900),        # 0 min -> 15
            (1000, Direction.DOWN, 0),      # 16 min rounds to 15 -> 0
            (0, Direction.DOWN, 0),         # clamped
            (7 * 60 + 59, Direction.UP, 900),   # 7 min rounds down
            (8 * 60, Direction.UP, 1800),       # 8 min rounds up
            (22 * 60, Direction.UP, 1800),      # 22 min rounds to 15
            (23 * 60, Direction.DOWN, 900),     # 23 min rounds to 30
            (3600 + 59, Direction.UP, 4500),
        ],
    )
    def test_quantize(self, seconds, direction, expected):
        assert quantize_adjust(seconds, direction) == expected

    def test_accepts_plain_strings(self):
        assert quantize_adjust(37, "up") == 900

    def test_repeated_adjustments_drop_remainder(self, departments):
        state = fresh_state(departments)
        for _ in range(1000):
            state = transition(state, Increment("DCE"))
        state = transition(state, AdjustTime("DCE", Direction.UP))
        state = transition(state, AdjustTime("DCE", Direction.DOWN))
        assert state.record("DCE").time == 900

    def test_leaves_active_flag(self, departments):
        state = transition(fresh_state(departments), Toggle("DCE"))
        state = transition(state, AdjustTime("DCE", Direction.UP))
        assert state.record("DCE") == TimerRecord(is_active=True, time=900)

    def test_never_negative(self, departments):
        state = fresh_state(departments)
        for _ in range(3):
            state = transition(state, AdjustTime("DCE", Direction.DOWN))
        assert state.record("DCE").time == 0


# ---- ChangeDate / Initialize / unknown ----

class TestOtherActions:
    def test_change_date_leaves_timers(self, departments):
        before = fresh_state(departments)
        after = transition(before, ChangeDate("2024-01-02"))
        assert after.current_date == "2024-01-02"
        assert after.timers == before.timers
        assert "2024-01-02" not in after.timers

    def test_initialize_adopts_snapshot(self, departments):
        snapshot = TrackerState(current_date="2023-12-31", timers={"2023-12-31": {"DCE": TimerRecord(False, 60)}})
        assert transition(fresh_state(departments), Initialize(snapshot=snapshot)) is snapshot

    def test_initialize_default(self, departments):
        state = transition(fresh_state(departments), Initialize(today="2024-02-02"))
        assert state == TrackerState(current_date="2024-02-02", timers={})

    def test_unknown_action_is_noop(self, departments):
        state = fresh_state(departments)
        assert transition(state, object()) is state

    def test_no_action_removes_days(self, departments):
        state = fresh_state(departments)
        for action in [ChangeDate("2024-01-02"), Toggle("DCE"), Increment("DCE"),
                       AdjustTime("DCE", Direction.DOWN), ChangeDate(DATE)]:
            state = transition(state, action)
            assert DATE in state.timers
