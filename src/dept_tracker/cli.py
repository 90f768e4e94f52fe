#!/usr/bin/env python3
"""Department time tracker CLI.

Usage:
    dept-tracker status                  # Today's timers
    dept-tracker status --date 2024-01-01
    dept-tracker toggle F3               # Start/stop by function key
    dept-tracker toggle "Public Safety"  # ...or by name
    dept-tracker adjust DCE up           # Snap to quarter hour, +15 min
    dept-tracker history                 # One line per stored day
    dept-tracker run                     # Live view with the tick driver
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional, Sequence, TextIO

import click
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from rich.console import Console, Group
from rich.live import Live
from rich.text import Text

from .clock import SystemClock
from .config import TrackerConfig, department_for_key, load_config
from .display import build_day_table, build_history_table, format_hhmmss
from .log import configure_logging, detach_stream_handler, logger, recent_logs
from .reducer import Direction
from .store import StateStore
from .ticker import TickDriver
from .tracker import Tracker

console = Console()

RUN_HELP = "F<n>/<n> toggle · +<n>/-<n> adjust · < > change day · q quit"


def resolve_department(target: str, departments: Sequence[str]) -> str:
    """Accept a function key (F1..Fn) or a department name, case-insensitive."""
    department = department_for_key(target, tuple(departments))
    if department is not None:
        return department
    for dept in departments:
        if dept.lower() == target.strip().lower():
            return dept
    raise click.BadParameter(
        f"Unknown department '{target}'. Use F1-F{len(departments)} or one of: {', '.join(departments)}",
        param_hint="TARGET",
    )


def apply_command(tracker: Tracker, line: str) -> bool:
    """Run one live-view command. Returns False when the user asked to quit."""
    command = line.strip()
    if not command:
        return True
    if command.lower() in ("q", "quit", "exit"):
        return False
    if command == "<":
        tracker.navigate(-1)
    elif command == ">":
        tracker.navigate(1)
    elif command[0] in "+-" and command[1:].isdigit():
        department = department_for_key(f"F{command[1:]}", tracker.departments)
        if department is None:
            logger.warning(f"No department at index {command[1:]}")
        else:
            tracker.adjust(department, Direction.UP if command[0] == "+" else Direction.DOWN)
    elif command.isdigit():
        if tracker.toggle_key(f"F{command}") is None:
            logger.warning(f"No department bound to F{command}")
    elif tracker.toggle_key(command) is None:
        logger.warning(f"Unknown command: {command}")
    return True


def _new_tracker(config: TrackerConfig) -> Tracker:
    clock = SystemClock(config.timezone)
    return Tracker(config.departments, clock, StateStore(config.db_path))


async def _open(config: TrackerConfig) -> Tracker:
    tracker = _new_tracker(config)
    await tracker.start()
    await tracker.flush()
    return tracker


async def _peek(config: TrackerConfig) -> Tracker:
    """Open the stored state without ever writing it back."""
    snapshot = await StateStore(config.db_path).load()
    tracker = Tracker(config.departments, SystemClock(config.timezone))
    tracker.initialize(snapshot)
    return tracker


def _render_live(tracker: Tracker) -> Group:
    lines = [build_day_table(tracker.state, tracker.departments)]
    for entry in recent_logs(3):
        lines.append(Text(f"{entry['timestamp']} {entry['level']:<7} {entry['message']}", style="dim"))
    lines.append(Text(RUN_HELP, style="dim italic"))
    return Group(*lines)


async def _run_live(config: TrackerConfig, stdin: Optional[TextIO] = None) -> None:
    stdin = stdin if stdin is not None else sys.stdin
    tracker = await _open(config)
    scheduler = AsyncIOScheduler()
    driver = TickDriver(tracker, tracker.clock, config.tick_interval_ms)
    driver.start(scheduler)
    scheduler.start()

    quit_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def on_stdin():
        line = stdin.readline()
        if not line or not apply_command(tracker, line):
            quit_event.set()

    reader_installed = False
    try:
        loop.add_reader(stdin, on_stdin)
        reader_installed = True
    except (NotImplementedError, ValueError, OSError):
        logger.warning("Keyboard commands unavailable here; press Ctrl-C to quit")

    try:
        with Live(_render_live(tracker), console=console, refresh_per_second=4) as live:
            while not quit_event.is_set():
                live.update(_render_live(tracker))
                try:
                    await asyncio.wait_for(quit_event.wait(), timeout=0.25)
                except asyncio.TimeoutError:
                    pass
    finally:
        if reader_installed:
            loop.remove_reader(stdin)
        driver.stop()
        scheduler.shutdown(wait=False)
        await tracker.flush()


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--db", "db_path", type=click.Path(dir_okay=False, path_type=Path),
              help="SQLite file holding the tracker state.")
@click.option("--tz", "timezone", help="Time zone for civil dates (e.g. America/Los_Angeles, PST).")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def cli(ctx, db_path, timezone, verbose):
    """Track time per department, one running timer at a time."""
    config = load_config(validate=False)
    if db_path:
        config.db_path = db_path
    if timezone:
        config.timezone = timezone
    if verbose:
        config.verbose = True
    config.validate()
    configure_logging(config.verbose)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command()
@click.option("--date", "civil_date", type=click.DateTime(formats=["%Y-%m-%d"]),
              help="Day to show in YYYY-MM-DD (defaults to today).")
@click.pass_context
def status(ctx, civil_date):
    """Show one day's timers."""
    config = ctx.obj["config"]
    tracker = asyncio.run(_peek(config))
    day = civil_date.date().isoformat() if civil_date else None
    console.print(build_day_table(tracker.state, tracker.departments, day))


@cli.command()
@click.argument("target", metavar="TARGET")
@click.pass_context
def toggle(ctx, target):
    """Start or stop a department (name or F-key); starting stops any other."""
    config = ctx.obj["config"]
    department = resolve_department(target, config.departments)

    async def _toggle() -> Tracker:
        tracker = await _open(config)
        tracker.toggle(department)
        await tracker.flush()
        return tracker

    tracker = asyncio.run(_toggle())
    record = tracker.state.record(department)
    verb = "Started" if record.is_active else "Stopped"
    console.print(f"{verb} [bold]{department}[/bold] at {format_hhmmss(record.time)}")


@cli.command()
@click.argument("target", metavar="TARGET")
@click.argument("direction", type=click.Choice([d.value for d in Direction]))
@click.pass_context
def adjust(ctx, target, direction):
    """Snap a department's time to the quarter hour and step it up or down."""
    config = ctx.obj["config"]
    department = resolve_department(target, config.departments)

    async def _adjust() -> Tracker:
        tracker = await _open(config)
        tracker.adjust(department, Direction(direction))
        await tracker.flush()
        return tracker

    tracker = asyncio.run(_adjust())
    record = tracker.state.record(department)
    console.print(f"[bold]{department}[/bold] now {format_hhmmss(record.time)}")


@cli.command()
@click.pass_context
def history(ctx):
    """List every stored day with its total."""
    config = ctx.obj["config"]
    tracker = asyncio.run(_peek(config))
    console.print(build_history_table(tracker.state))


@cli.command()
@click.pass_context
def run(ctx):
    """Run the timers live until 'q', EOF or Ctrl-C."""
    config = ctx.obj["config"]
    detach_stream_handler()
    try:
        asyncio.run(_run_live(config))
    except KeyboardInterrupt:
        pass
    console.print("Stopped.")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
