"""Bridge from the standard ``logging`` module into the process log sink."""

from __future__ import annotations

import logging

from ferroxide.settings import get_settings
from ferroxide.utils.paths import get_path_to

from .filters import parse_filters
from .formatter import sanitize
from .records import LogLevel
from .sink import LOG_STYLES, SINK_TARGET, LoggerStateError, LogSink

LOG_FILE = "logs.txt"


class SinkHandler(logging.Handler):
    """Forward ``logging`` records to a :class:`LogSink`, using the logger name as target."""

    def __init__(self, sink: LogSink, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.sink = sink

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
        except Exception:
            message = sanitize(record.msg)
        try:
            self.sink.emit(LogLevel.from_levelno(record.levelno), record.name, message)
        except Exception:
            self.handleError(record)


def installed_sink() -> LogSink | None:
    """Return the sink attached to the root logger, if any."""

    for handler in logging.getLogger().handlers:
        if isinstance(handler, SinkHandler):
            return handler.sink
    return None


def init_logging() -> LogSink:
    """Start the log sink and install it on the root logger.

    Must run once, before the first record is emitted.  Raises
    :class:`LoggerStartupError` when the log file cannot be opened and
    :class:`LoggerStateError` when a sink is already installed.
    """

    if installed_sink() is not None:
        raise LoggerStateError("logger already initialized")

    settings = get_settings()
    warnings: list[str] = []
    style = settings.log_style
    if style not in LOG_STYLES:
        warnings.append(f"invalid log style {style!r}; falling back to 'auto'")
        style = "auto"

    sink = LogSink(get_path_to(LOG_FILE), style=style)
    sink.start()

    log_filter, filter_warnings = parse_filters(settings.log_filter)
    warnings.extend(filter_warnings)
    handler = SinkHandler(sink)
    handler.addFilter(log_filter)

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(log_filter.min_level())

    for warning in warnings:
        sink.emit(LogLevel.WARN, SINK_TARGET, warning)
    return sink


def uninstall_logging() -> None:
    """Detach any installed sink handler from the root logger (test helper)."""

    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, SinkHandler):
            root.removeHandler(handler)
