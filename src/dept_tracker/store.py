"""Persistence gateway: the tracker snapshot in a SQLite key-value table.

Best-effort: every failure is logged and swallowed here so the in-memory
state stays the source of truth. ``load()`` answers None and ``save()``
answers False; the next transition simply tries again.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

import aiosqlite
from pydantic import ValidationError

from .config import STATE_KEY
from .log import logger
from .state import TrackerState, decode_snapshot, encode_snapshot

_PERSISTENCE_ERRORS = (aiosqlite.Error, sqlite3.Error, OSError, ValidationError, ValueError)


class StateStore:
    """Reads and writes one serialized ``TrackerState`` under a fixed key."""

    def __init__(self, db_path: Path, key: str = STATE_KEY):
        self.db_path = Path(db_path)
        self.key = key

    @staticmethod
    async def init_tables(db: aiosqlite.Connection):
        await db.execute("""
            CREATE TABLE IF NOT EXISTS tracker_state (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

    async def load(self) -> Optional[TrackerState]:
        if not self.db_path.exists():
            logger.info(f"No saved state at {self.db_path}")
            return None
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await self.init_tables(db)
                cursor = await db.execute(
                    "SELECT value FROM tracker_state WHERE key = ?", (self.key,)
                )
                row = await cursor.fetchone()
            if row is None:
                logger.info("No saved state found")
                return None
            state = decode_snapshot(row[0])
        except _PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to load state from {self.db_path}: {e}")
            return None
        logger.debug(f"Loaded state with {len(state.timers)} day(s)")
        return state

    async def save(self, state: TrackerState) -> bool:
        try:
            payload = encode_snapshot(state)
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(self.db_path) as db:
                await self.init_tables(db)
                await db.execute("""
                    INSERT INTO tracker_state (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                """, (self.key, payload, datetime.now().isoformat()))
                await db.commit()
        except _PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to save state to {self.db_path}: {e}")
            return False
        return True
