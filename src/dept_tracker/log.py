"""Logging for the tracker: one named logger plus a ring buffer of recent records."""

from __future__ import annotations

import logging
import sys
from collections import deque
from datetime import datetime
from typing import Deque

logger = logging.getLogger("dept_tracker")
logger.setLevel(logging.DEBUG)

# Circular buffer of recent log entries, shown under the live table
log_buffer: Deque[dict] = deque(maxlen=100)


class LogBufferHandler(logging.Handler):
    """Logging handler that captures records to the circular buffer."""

    def emit(self, record: logging.LogRecord):
        try:
            log_buffer.append({
                "timestamp": datetime.fromtimestamp(record.created).strftime("%H:%M:%S"),
                "level": record.levelname,
                "message": self.format(record),
            })
        except Exception:
            self.handleError(record)


buffer_handler = LogBufferHandler()
buffer_handler.setLevel(logging.INFO)
buffer_handler.setFormatter(logging.Formatter("%(message)s"))
logger.addHandler(buffer_handler)

_stream_handler: logging.Handler | None = None


def configure_logging(verbose: bool = False) -> None:
    """Send records to stderr: everything when verbose, warnings and up otherwise."""
    global _stream_handler
    detach_stream_handler()
    _stream_handler = logging.StreamHandler(sys.stderr)
    _stream_handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    _stream_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.addHandler(_stream_handler)


def detach_stream_handler() -> None:
    """Stop writing to stderr (the live view renders the buffer instead)."""
    global _stream_handler
    if _stream_handler is not None:
        logger.removeHandler(_stream_handler)
        _stream_handler = None


def recent_logs(limit: int = 5) -> list[dict]:
    return list(log_buffer)[-limit:]
