"""Shared helpers for CLI subcommands."""

from __future__ import annotations

from typing import Any, Iterable, Sequence

import typer
from rich.console import Console
from rich.table import Table

from cli.common import emit_json

console = Console()


def make_app(help_text: str) -> typer.Typer:
    return typer.Typer(
        help=help_text,
        context_settings={"help_option_names": ["-h", "--help"]},
        add_completion=False,
        no_args_is_help=True,
    )


def print_table(title: str, columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    table = Table(title=title)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*("" if value is None else str(value) for value in row))
    console.print(table)


def format_amount(value: float) -> str:
    return f"{value:,.2f}"


__all__ = ["console", "emit_json", "format_amount", "make_app", "print_table"]
