"""Terminal rendering of tracker state with rich."""

from __future__ import annotations

from typing import Sequence

from rich import box
from rich.table import Table
from rich.text import Text

from .state import TrackerState


def format_hhmmss(total_seconds: int) -> str:
    """Format seconds as 'HH:MM:SS' (hours keep growing past 99)."""
    if total_seconds < 0:
        total_seconds = 0
    h = total_seconds // 3600
    m = (total_seconds % 3600) // 60
    s = total_seconds % 60
    return f"{h:02d}:{m:02d}:{s:02d}"


def build_day_table(state: TrackerState, departments: Sequence[str], civil_date: str | None = None) -> Table:
    """One row per configured department, plus any ad hoc entries stored for the day."""
    civil_date = civil_date or state.current_date
    day = state.day(civil_date)

    table = Table(title=civil_date, show_header=True, header_style="bold cyan", box=box.SIMPLE)
    table.add_column("Key", style="dim", width=4)
    table.add_column("Department")
    table.add_column("Time", justify="right")
    table.add_column("", width=3)

    extras = [dept for dept in day if dept not in departments]
    for index, dept in enumerate(list(departments) + extras):
        record = state.record(dept, civil_date)
        key = f"F{index + 1}" if index < len(departments) else ""
        style = "bold green" if record.is_active else ""
        marker = Text("●", style="green") if record.is_active else Text("")
        table.add_row(key, Text(dept, style=style), Text(format_hhmmss(record.time), style=style), marker)

    table.add_section()
    table.add_row("", Text("Total", style="bold"), Text(format_hhmmss(state.day_total(civil_date)), style="bold"), "")
    return table


def build_history_table(state: TrackerState) -> Table:
    table = Table(show_header=True, header_style="bold cyan", box=box.SIMPLE)
    table.add_column("Date")
    table.add_column("Total", justify="right")
    table.add_column("Most time")

    for civil_date in sorted(state.timers):
        day = state.day(civil_date)
        top = max(day.items(), key=lambda item: item[1].time, default=None)
        top_text = f"{top[0]} ({format_hhmmss(top[1].time)})" if top and top[1].time > 0 else "-"
        style = "bold" if civil_date == state.current_date else ""
        table.add_row(Text(civil_date, style=style), format_hhmmss(state.day_total(civil_date)), top_text)

    return table
