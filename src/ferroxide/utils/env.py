"""Environment helpers."""

from __future__ import annotations

import os
from typing import Mapping


def get_env_str(
    key: str,
    *,
    required: bool = False,
    default: str | None = None,
    env: Mapping[str, str] | None = None,
) -> str | None:
    """Fetch a string from the environment, raising if required and missing."""
    source = env if env is not None else os.environ
    value = source.get(key, default)
    if required and not value:
        raise RuntimeError(f"missing env: {key}")
    return value
