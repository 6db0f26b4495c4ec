"""Console and file rendering of log records with shared column alignment."""

from __future__ import annotations

from datetime import datetime
from threading import Lock
from typing import Any

import typer

from ferroxide.utils.clock import format_timestamp

from .records import LogLevel, LogRecord

LEVEL_WIDTH = 5

LEVEL_STYLES: dict[LogLevel, dict[str, Any]] = {
    LogLevel.TRACE: {"fg": typer.colors.CYAN},
    LogLevel.DEBUG: {"fg": typer.colors.BLUE},
    LogLevel.INFO: {"fg": typer.colors.GREEN},
    LogLevel.WARN: {"fg": typer.colors.YELLOW},
    LogLevel.ERROR: {"fg": typer.colors.RED, "bold": True},
}

_ESCAPES = str.maketrans({"\n": "\\n", "\r": "\\r"})


class AlignmentTracker:
    """Widest target seen so far; only ever grows."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._width = 0

    @property
    def width(self) -> int:
        return self._width

    def observe(self, target: str) -> int:
        """Record ``target`` and return the width to pad targets to."""

        size = len(target)
        if size <= self._width:
            return self._width
        with self._lock:
            if size > self._width:
                self._width = size
            return self._width


def sanitize(value: Any) -> str:
    """Render ``value`` as single-line text, or an empty string when it cannot be rendered."""

    try:
        text = value if isinstance(value, str) else str(value)
    except Exception:
        return ""
    # lone surrogates cannot be written as UTF-8
    return text.translate(_ESCAPES).encode("utf-8", "backslashreplace").decode("utf-8")


class RecordFormatter:
    """Turns one record into its console and file lines."""

    def __init__(self, tracker: AlignmentTracker | None = None) -> None:
        self.tracker = tracker or AlignmentTracker()

    def width_for(self, record: LogRecord) -> int:
        return self.tracker.observe(record.target)

    def console_line(self, record: LogRecord, width: int, *, colorize: bool = False) -> str:
        level = f"{record.level.name:<{LEVEL_WIDTH}}"
        target = f"{record.target:<{width}}"
        if colorize:
            level = typer.style(level, **LEVEL_STYLES[record.level])
            target = typer.style(target, bold=True)
        return f" {level} {target} > {record.message}"

    def file_line(self, record: LogRecord, width: int, moment: datetime) -> str:
        level = f"{record.level.name:<{LEVEL_WIDTH}}"
        return f"[{level} {format_timestamp(moment)}] {record.target:<{width}} > {record.message}"
