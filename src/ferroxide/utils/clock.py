"""Timezone-aware clock helpers."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from ferroxide.settings import get_settings

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def timezone() -> ZoneInfo:
    return ZoneInfo(get_settings().timezone)


def tz_time() -> datetime:
    """Current date and time in the configured timezone."""

    return datetime.now(timezone())


def tz_time_s() -> int:
    """Current Unix timestamp in seconds."""

    return int(tz_time().timestamp())


def tz_time_ms() -> int:
    """Current Unix timestamp in milliseconds."""

    return int(tz_time().timestamp() * 1000)


def format_timestamp(moment: datetime) -> str:
    return moment.strftime(TIMESTAMP_FORMAT)
