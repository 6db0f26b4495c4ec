"""FastAPI application exposing health and logging KPIs."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi import FastAPI, Request

from ferroxide import __version__
from ferroxide.core.logging import installed_sink
from ferroxide.core.metrics import snapshot_kpis
from ferroxide.core.sink import LogSink
from ferroxide.settings import get_settings
from ferroxide.utils.clock import tz_time

from .cors import CorsMiddleware

log = logging.getLogger("ferroxide.server")


def _sink_status(sink: LogSink | None) -> dict[str, Any]:
    if sink is None:
        return {"installed": False}
    return {
        "installed": True,
        "state": sink.state.value,
        "path": str(sink.path),
        "line_count": sink.line_count,
    }


def create_app(sink: LogSink | None = None) -> FastAPI:
    """Build the service; falls back to the sink installed on the root logger."""

    settings = get_settings()
    app = FastAPI(title=settings.app_brand, version=__version__)
    app.state.sink = sink if sink is not None else installed_sink()
    app.state.started_at = tz_time()
    app.add_middleware(CorsMiddleware)

    @app.get("/healthz")
    async def healthz(request: Request) -> dict[str, Any]:
        started: datetime = request.app.state.started_at
        return {
            "ok": True,
            "version": __version__,
            "uptime_s": round((tz_time() - started).total_seconds(), 3),
            "logger": _sink_status(request.app.state.sink),
            "ts": tz_time().isoformat(timespec="seconds"),
        }

    @app.get("/metrics")
    async def metrics() -> dict[str, Any]:
        return {"ok": True, "kpi": snapshot_kpis()}

    log.debug("Application created (brand=%s)", settings.app_brand)
    return app
