"""Base directory resolution for Ferroxide data files."""

from __future__ import annotations

import logging
import sys
from functools import lru_cache
from pathlib import Path
from typing import Mapping

from ferroxide.settings import get_settings

from .env import get_env_str

BASE_PATH_NAME = "ferroxide"
log = logging.getLogger("ferroxide.paths")


class BasePathError(RuntimeError):
    """Raised when the base directory cannot be resolved or created."""


def os_specific_path(platform: str | None = None, env: Mapping[str, str] | None = None) -> Path:
    """Return the per-user data directory for the given platform."""

    platform = platform or sys.platform
    try:
        if platform == "win32":
            home = get_env_str("USERPROFILE", required=True, env=env)
            return Path(f"{home}\\{BASE_PATH_NAME}")
        if platform.startswith("linux") or platform == "darwin":
            home = get_env_str("HOME", required=True, env=env)
            return Path(f"{home}/.{BASE_PATH_NAME}")
    except RuntimeError as exc:
        raise BasePathError(str(exc)) from exc
    raise BasePathError(f"unsupported platform: {platform}")


@lru_cache(maxsize=1)
def get_base_path() -> Path:
    """Resolve the base directory once, creating it when missing.

    ``FERROXIDE_HOME`` takes precedence over the platform default.
    """

    override = get_settings().ferroxide_home
    path = Path(override).expanduser() if override else os_specific_path()
    if not path.exists():
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            log.error("Failed to create base path: %s", exc)
            raise BasePathError(f"Failed to create base path: {exc}") from exc
    return path


def get_path_to(path: str) -> Path:
    """Join a relative fragment to the base directory, ignoring leading slashes."""

    return get_base_path() / path.lstrip("/")
