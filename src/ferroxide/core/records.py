"""Severity levels and the per-call log record."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class LogLevel(Enum):
    """Record severity, valued by the matching ``logging`` level number."""

    ERROR = logging.ERROR
    WARN = logging.WARNING
    INFO = logging.INFO
    DEBUG = logging.DEBUG
    TRACE = 5

    @classmethod
    def from_levelno(cls, levelno: int) -> LogLevel:
        """Fold an arbitrary ``logging`` level number onto the nearest severity at or below it."""

        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARN
        if levelno >= logging.INFO:
            return cls.INFO
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.TRACE

    @classmethod
    def parse(cls, name: str) -> LogLevel:
        """Parse a case-insensitive level name; raises ``ValueError`` when unknown."""

        key = name.strip().upper()
        if key == "WARNING":
            key = "WARN"
        elif key == "CRITICAL":
            key = "ERROR"
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"unknown log level: {name!r}") from None


@dataclass(frozen=True, slots=True)
class LogRecord:
    """A single record handed to the sink; timestamped when formatted."""

    level: LogLevel
    target: str
    message: str
