"""
Human-readable output formatting for the CLI.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping

import typer
from rich.console import Console
from rich.table import Table

from ..path import BlobPath

_console = Console()


def _format_value(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return ", ".join(f"{k}={v}" for k, v in sorted(value.items())) or "-"
    if isinstance(value, (tuple, list)):
        return ", ".join(str(v) for v in value) or "-"
    if value is None:
        return "-"
    return str(value)


def _format_bytes(n: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ("B", "KiB", "MiB", "GiB"):
        if n < 1024:
            return f"{n} {unit}" if unit == "B" else f"{n:.1f} {unit}"
        n /= 1024
    return f"{n:.1f} TiB"


def print_listing(paths: Iterable[BlobPath]) -> None:
    for path in paths:
        typer.echo(path.to_uri())


def print_long_listing(rows: Iterable[tuple]) -> None:
    """Print (path, attributes) rows as a table."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    table.add_column("Path", style="cyan")
    for path, attrs in rows:
        size = "dir" if attrs.is_directory else _format_bytes(attrs.size)
        table.add_row(size, _format_value(attrs.last_modified_time), path.to_uri())
    _console.print(table)


def print_attributes(path: BlobPath, attributes: Mapping[str, Any]) -> None:
    table = Table(title=path.to_uri(), show_header=False)
    table.add_column("Attribute", style="bold")
    table.add_column("Value")
    for name, value in attributes.items():
        table.add_row(name, _format_value(value))
    _console.print(table)


def print_summary(message: str) -> None:
    typer.echo(message)


def print_error(exc: BaseException) -> None:
    typer.echo(f"Error: {exc}", err=True)
