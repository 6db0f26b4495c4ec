"""Core logging: formatting, the bounded log file and the process sink."""

from .filters import TargetFilter, parse_filters
from .logging import SinkHandler, init_logging, installed_sink
from .records import LogLevel, LogRecord
from .rotation import CAPACITY, THRESHOLD
from .sink import LoggerStartupError, LoggerStateError, LogSink

__all__ = [
    "CAPACITY",
    "THRESHOLD",
    "LogLevel",
    "LogRecord",
    "LogSink",
    "LoggerStartupError",
    "LoggerStateError",
    "SinkHandler",
    "TargetFilter",
    "init_logging",
    "installed_sink",
    "parse_filters",
]
