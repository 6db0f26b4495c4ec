"""Ferroxide command-line interface."""

from __future__ import annotations

import logging
import re

import typer
import uvicorn
from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from ferroxide.core.logging import LOG_FILE, init_logging
from ferroxide.core.records import LogLevel
from ferroxide.core.sink import LoggerStartupError, LoggerStateError
from ferroxide.settings import get_settings
from ferroxide.utils.paths import BasePathError, get_path_to

from . import __version__

app = typer.Typer(name="ferroxide", help="Ferroxide backend service CLI.")
log_cli_app = typer.Typer(help="Log emission and inspection utilities.")
app.add_typer(log_cli_app, name="log")

DEFAULT_PORT = 2137
_LINE_LEVEL = re.compile(r"^\[(\w+)\s")

log = logging.getLogger("ferroxide.cli")


def _start_logging() -> None:
    load_dotenv(find_dotenv(usecwd=True))
    get_settings.cache_clear()
    try:
        init_logging()
    except (LoggerStartupError, LoggerStateError, BasePathError, ValidationError) as exc:
        typer.secho(f"logger initialization failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(1) from exc


def resolve_port(raw: str | None) -> int:
    """Parse ``raw`` as a TCP port, logging and falling back to the default when invalid."""

    if raw is None or not raw.strip():
        return DEFAULT_PORT
    try:
        port = int(raw)
        if not 0 < port < 65536:
            raise ValueError(f"{port} is out of range")
    except ValueError as exc:
        log.error("Invalid port number: %s; using default port %s", exc, DEFAULT_PORT)
        return DEFAULT_PORT
    return port


@app.command()
def version() -> None:
    """Print the Ferroxide version."""

    typer.echo(__version__)


@app.command()
def serve() -> None:
    """Initialize logging and run the HTTP service."""

    _start_logging()
    settings = get_settings()
    log.info(
        "Logger initialized successfully with level: %s",
        logging.getLevelName(logging.getLogger().level),
    )
    if settings.dev_mode:
        log.warning("Running with development mode enabled")

    port = resolve_port(settings.port)
    log.info("Starting server on %s:%s", settings.host, port)

    from ferroxide.server import create_app

    try:
        uvicorn.run(create_app(), host=settings.host, port=port, log_config=None)
    except KeyboardInterrupt:
        log.info("Server stopped cleanly")


@log_cli_app.command("emit")
def log_emit(
    target: str = typer.Argument(..., help="Target (logger name) of the record."),
    message: str = typer.Argument(..., help="Message text."),
    level: str = typer.Option("INFO", "--level", "-l", help="Severity of the record."),
) -> None:
    """Write one record through the configured sink."""

    try:
        severity = LogLevel.parse(level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--level") from exc
    _start_logging()
    logging.getLogger(target).log(severity.value, message)


@log_cli_app.command("tail")
def log_tail(
    level: str = typer.Option("TRACE", "--level", "-l", help="Minimum level to include."),
    lines: int = typer.Option(20, "--lines", "-n", help="Number of lines to display."),
) -> None:
    """Show the most recent lines of the log file."""

    try:
        min_level = LogLevel.parse(level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--level") from exc

    load_dotenv(find_dotenv(usecwd=True))
    get_settings.cache_clear()
    try:
        path = get_path_to(LOG_FILE)
    except (BasePathError, ValidationError) as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(1) from exc
    if not path.exists():
        typer.secho("log file not found", err=True, fg=typer.colors.RED)
        raise typer.Exit(1)

    def _keep(line: str) -> bool:
        match = _LINE_LEVEL.match(line)
        if match is None:
            return True
        try:
            return LogLevel.parse(match.group(1)).value >= min_level.value
        except ValueError:
            return True

    with path.open("r", encoding="utf-8") as handle:
        buffer = [line.rstrip("\n") for line in handle if line.strip() and _keep(line)]
    if lines <= 0:
        return
    for entry in buffer[-lines:]:
        typer.echo(entry)


if __name__ == "__main__":
    app()
