from __future__ import annotations

import io
import logging
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from ferroxide.core.logging import uninstall_logging
from ferroxide.core.metrics import METRICS
from ferroxide.core.sink import LogSink
from ferroxide.settings import get_settings
from ferroxide.utils.paths import get_base_path

FIXED_NOW = datetime(2024, 5, 17, 12, 30, 45, tzinfo=ZoneInfo("Europe/Warsaw"))


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture(autouse=True)
def _isolated_runtime(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.chdir(tmp_path)
    for key in ("LOG_FILTER", "LOG_STYLE", "PORT", "HOST", "DEV_MODE", "NO_COLOR"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("FERROXIDE_HOME", str(tmp_path / "home"))
    root = logging.getLogger()
    previous_level = root.level
    METRICS.reset()
    get_settings.cache_clear()
    get_base_path.cache_clear()
    yield
    uninstall_logging()
    root.setLevel(previous_level)
    get_settings.cache_clear()
    get_base_path.cache_clear()


@pytest.fixture
def console() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def make_sink(tmp_path: Path, console: io.StringIO):
    def _make(path: Path | None = None, **kwargs) -> LogSink:
        kwargs.setdefault("clock", fixed_clock)
        kwargs.setdefault("stream", console)
        kwargs.setdefault("style", "never")
        return LogSink(path or tmp_path / "logs.txt", **kwargs)

    return _make
