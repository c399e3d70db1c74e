"""CLI for song-aggregator using Typer and Rich.

Runs one aggregation from the terminal or serves the JSON endpoint.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from enum import StrEnum
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from song_aggregator.aggregator import SongAggregator, results_to_json
from song_aggregator.config import Config, SearchMode
from song_aggregator.console import (
    print as cprint,
)
from song_aggregator.console import (
    print_error,
    print_warning,
    set_console,
    song_table,
    status,
)
from song_aggregator.errors import ConfigError, NotFoundError, SongAggregatorError
from song_aggregator.models import SongResult
from song_aggregator.safe_logging import configure_rich_logging


class OutputFormat(StrEnum):
    """Output format for CLI commands."""

    TEXT = "text"
    JSON = "json"


class ExitCode:
    """Standard exit codes for CLI commands."""

    SUCCESS = 0
    ERROR = 1
    NO_RESULTS = 2


app = typer.Typer(
    name="song-aggregator",
    help="Look up a song across Spotify, YouTube and Genius",
    no_args_is_help=True,
    add_completion=False,
)


class AppState:
    """Global application state passed between commands."""

    config: Config
    output_format: OutputFormat
    verbose: int


state = AppState()


@app.callback()
def callback(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="TOML configuration file"),
    ] = None,
    output: Annotated[
        OutputFormat,
        typer.Option("--output", "-o", help="Output format"),
    ] = OutputFormat.TEXT,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase verbosity"),
    ] = 0,
    mode: Annotated[
        SearchMode | None,
        typer.Option(help="Return every candidate (all) or only the best one (top)"),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option(help="Per provider call timeout in seconds"),
    ] = None,
    no_placeholders: Annotated[
        bool,
        typer.Option(
            "--no-placeholders",
            help="Omit synthetic genre, play count and chart position",
        ),
    ] = False,
) -> None:
    """Song aggregator: one record per song from several providers."""
    logger = logging.getLogger(__name__)

    # Precedence: CLI > Env > Config File > Defaults
    cfg = Config.load(config_path)

    if mode is not None:
        cfg.search.mode = mode
    if timeout is not None:
        cfg.providers.timeout_s = timeout
    if no_placeholders:
        cfg.placeholders.enabled = False

    if verbose > 0:
        log_level = logging.DEBUG if verbose >= 2 else logging.INFO
    else:
        log_level = getattr(logging, cfg.logging.level.upper(), logging.WARNING)

    configure_rich_logging(level=log_level, format_string=cfg.logging.format)
    # Logs go to stderr; results go to stdout
    set_console(Console())

    # Suppress external library logging unless very verbose (-vvv)
    if verbose < 3:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.debug(f"Logging configured: level={logging.getLevelName(log_level)}")

    state.config = cfg
    state.output_format = output
    state.verbose = verbose


def _build_aggregator() -> SongAggregator:
    try:
        return SongAggregator(state.config)
    except ConfigError as e:
        print_error(str(e))
        sys.exit(ExitCode.ERROR)


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="Free-text song query")],
) -> None:
    """Search for a song and print the aggregated record(s).

    Examples:
        song-aggregator search "daft punk get lucky"
        song-aggregator --mode top -o json search "bohemian rhapsody"
    """
    logger = logging.getLogger(__name__)
    aggregator = _build_aggregator()

    try:
        with status(f"Searching for '{query}'..."):
            results = asyncio.run(aggregator.search(query))
    except NotFoundError as e:
        print_warning(str(e))
        sys.exit(ExitCode.NO_RESULTS)
    except SongAggregatorError as e:
        print_error(str(e))
        sys.exit(ExitCode.ERROR)

    logger.info(f"Search for '{query}' finished")

    if state.output_format == OutputFormat.JSON:
        cprint(
            json.dumps(results_to_json(results), indent=2),
            markup=False,
            highlight=False,
            soft_wrap=True,
        )
    else:
        rows = [results] if isinstance(results, SongResult) else results
        cprint(song_table(rows))
        top = rows[0]
        if top.lyrics:
            cprint(
                f"\n[bold]{escape(top.title)}[/bold]:\n{escape(top.lyrics)}",
                highlight=False,
            )
        if top.related_songs:
            related = ", ".join(
                f"{r.title} ({', '.join(r.artist_names)})" for r in top.related_songs
            )
            cprint(f"\n[bold]Related:[/bold] {escape(related)}", highlight=False)
        if top.synthetic_fields:
            cprint(
                f"\n[dim]Synthetic placeholder fields: {', '.join(top.synthetic_fields)}[/dim]"
            )

    sys.exit(ExitCode.SUCCESS)


@app.command()
def serve(
    host: Annotated[str | None, typer.Option(help="Bind address")] = None,
    port: Annotated[int | None, typer.Option(help="Bind port")] = None,
) -> None:
    """Serve the search endpoint over HTTP."""
    import uvicorn

    from song_aggregator.server import create_app

    cfg = state.config
    if host:
        cfg.server.host = host
    if port:
        cfg.server.port = port

    try:
        api = create_app(cfg)
    except ConfigError as e:
        print_error(str(e))
        sys.exit(ExitCode.ERROR)

    cprint(f"Serving on http://{cfg.server.host}:{cfg.server.port}{cfg.server.path}")
    uvicorn.run(api, host=cfg.server.host, port=cfg.server.port, log_config=None)


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
