"""Dual-sink dispatcher: console first, then the bounded log file."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from pathlib import Path
from threading import Lock
from typing import Any, TextIO

from ferroxide.utils.clock import tz_time

from .formatter import RecordFormatter, sanitize
from .metrics import METRICS
from .records import LogLevel, LogRecord
from .rotation import CAPACITY, RotationController
from .store import FileLogStore

SINK_TARGET = "ferroxide.logger"
LOG_STYLES = ("auto", "always", "never")


class LoggerStartupError(RuntimeError):
    """The log file could not be established at startup."""


class LoggerStateError(RuntimeError):
    """The sink was started twice or used out of order."""


class SinkState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class LogSink:
    """Process-wide log sink writing every record to the console and the log file.

    Console writes are unsynchronised and best-effort.  The file append, the
    line counter and rotation share one lock so appends never interleave and
    a rotation is never observed half-way by another writer.  File errors are
    reported on the console and never reach the caller.
    """

    def __init__(
        self,
        path: Path,
        *,
        clock: Callable[[], datetime] = tz_time,
        stream: TextIO | None = None,
        style: str = "auto",
        capacity: int = CAPACITY,
        formatter: RecordFormatter | None = None,
    ) -> None:
        self.store = FileLogStore(path)
        self.rotation = RotationController(capacity)
        self.formatter = formatter or RecordFormatter()
        self.state = SinkState.UNINITIALIZED
        self._clock = clock
        self._stream = stream
        self._style = style
        self._file_lock = Lock()

    @property
    def path(self) -> Path:
        return self.store.path

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    @property
    def line_count(self) -> int:
        return self.rotation.line_count

    def start(self) -> None:
        """Seed the line counter, open the file and write the session header."""

        if self.state is not SinkState.UNINITIALIZED:
            raise LoggerStateError("logger already initialized")
        self.state = SinkState.INITIALIZING
        with self._file_lock:
            self.rotation.seed(self.store.count_lines())
            try:
                self.store.open_for_append()
                self.store.write_header(self._clock())
            except OSError as exc:
                self.state = SinkState.UNINITIALIZED
                raise LoggerStartupError(f"Failed to open log file {self.path}: {exc}") from exc
        self.state = SinkState.READY

    def emit(self, level: LogLevel, target: Any, message: Any) -> None:
        """Write one record to both sinks; never raises on I/O failure."""

        record = LogRecord(level, sanitize(target), sanitize(message))
        width = self.formatter.width_for(record)
        self._write_console(record, width)
        METRICS.increment_counter("records_total")

        if self.state is not SinkState.READY:
            return

        with self._file_lock:
            line = self.formatter.file_line(record, width, self._clock())
            try:
                self.store.append(line)
            except (OSError, ValueError) as exc:
                METRICS.increment_counter("file_errors_total")
                self._report(f"Failed to write to log file: {exc}")
                return
            try:
                if self.rotation.after_append(self.store):
                    METRICS.increment_counter("rotations_total")
            except (OSError, ValueError) as exc:
                METRICS.increment_counter("rotation_errors_total")
                self._report(f"Failed to rotate log file: {exc}")

    def _report(self, message: str) -> None:
        METRICS.record_error()
        record = LogRecord(LogLevel.ERROR, SINK_TARGET, message)
        self._write_console(record, self.formatter.width_for(record))

    def _colorize(self, stream: TextIO) -> bool:
        if self._style == "always":
            return True
        if self._style == "never" or os.environ.get("NO_COLOR"):
            return False
        isatty = getattr(stream, "isatty", None)
        return bool(isatty and isatty())

    def _write_console(self, record: LogRecord, width: int) -> None:
        stream = self.stream
        try:
            line = self.formatter.console_line(record, width, colorize=self._colorize(stream))
            stream.write(line + "\n")
            stream.flush()
        except (OSError, ValueError):
            # console output is best-effort
            return
