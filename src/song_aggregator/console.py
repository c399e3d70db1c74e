"""Shared Rich console utilities for song-aggregator.

Provides a global Rich console instance and helpers for consistent
output formatting across CLI commands.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.status import Status
from rich.table import Table

from song_aggregator.models import SongResult

# Global console instance (initialized in CLI)
_console: Console | None = None


def get_console() -> Console:
    """Get the global Rich console instance, creating a default one if unset."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global Rich console instance.

    Args:
        console: The Console instance to use globally
    """
    global _console
    _console = console


@contextmanager
def status(
    message: str,
    spinner: str = "dots",
) -> Iterator[Status]:
    """Create a Rich Status context for showing ongoing operations.

    Example:
        with status("Searching providers..."):
            results = asyncio.run(aggregator.search(query))
    """
    with get_console().status(message, spinner=spinner) as st:
        yield st


def song_table(results: list[SongResult]) -> Table:
    """Render search results as a table, flagging synthetic columns."""
    table = Table(title="Search results")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Artist")
    table.add_column("Album")
    table.add_column("Popularity", justify="right")
    table.add_column("YouTube views", justify="right")
    table.add_column("Chart (synthetic)", justify="right", style="dim")

    for index, result in enumerate(results, start=1):
        views = f"{result.youtube_views:,}" if result.youtube_views is not None else "-"
        chart = str(result.chart_position.value) if result.chart_position else "-"
        table.add_row(
            str(index),
            escape(result.title),
            escape(result.artist),
            escape(result.album or "-"),
            str(result.popularity),
            views,
            chart,
        )
    return table


def print(*args: Any, **kwargs: Any) -> None:
    """Print to the global console."""
    get_console().print(*args, **kwargs)


def print_error(message: str) -> None:
    """Print an error message in red.

    Args:
        message: Error message to display
    """
    get_console().print(f"[red]Error: {escape(message)}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message in yellow.

    Args:
        message: Warning message to display
    """
    get_console().print(f"[yellow]Warning: {escape(message)}[/yellow]")
