"""Typer CLI entrypoint for the farm ledger."""

from __future__ import annotations

import os
import shlex
import sys
from importlib import import_module
from pathlib import Path
from typing import Iterable

import typer

from agriledger import __version__

_SUBCOMMAND_SPECS: list[tuple[str, str, str]] = [
    ("backup", "cli.commands.backup", "Export and restore full backups"),
    ("payments", "cli.commands.payments", "Record, edit and analyse payments"),
    ("taxonomy", "cli.commands.taxonomy", "Manage payment types and categories"),
    ("workers", "cli.commands.workers", "Manage the worker roster"),
    ("attendance", "cli.commands.attendance", "Mark and review worker attendance"),
    ("config", "cli.commands.config", "Inspect configuration"),
]
_SUBCOMMAND_NAMES = {name for name, _, _ in _SUBCOMMAND_SPECS}
_SUBCOMMANDS_REGISTERED = False

app = typer.Typer(
    help="AgriLedger: local farm ledger with archive backup and merge restore",
    context_settings={"help_option_names": ["-h", "--help"]},
    invoke_without_command=True,
    add_completion=True,
)


@app.callback()
def root(
    ctx: typer.Context,
    data_dir: Path | None = typer.Option(
        None,
        "--data-dir",
        help="Dataset root holding db.json and media/ (default: AGRILEDGER_DATA_DIR)",
    ),
    version_flag: bool = typer.Option(
        False,
        "-v",
        "--version",
        help="Print the version",
    ),
) -> None:
    if version_flag:
        typer.echo(__version__)
        raise typer.Exit()

    from cli.common import configure_logging, resolve_settings

    ctx.obj = {"data_dir": data_dir}
    configure_logging(resolve_settings(ctx).log_level)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command(help="Create the data directory and a default database if missing")
def init(ctx: typer.Context) -> None:
    from cli.common import build_store

    store = build_store(ctx)
    typer.echo(f"Database ready: {store.path}")


@app.command(help="Check that the database loads and every media reference resolves")
def doctor(ctx: typer.Context) -> None:
    from cli.common import build_store, emit_json

    store = build_store(ctx, initialize=False)
    result = store.load_result()
    references = list(_media_references(result.document))
    missing = store.media.find_missing(references)
    emit_json(
        {
            "document": str(store.path),
            "status": result.status,
            "error": result.error,
            "media_files": len(store.media.list_files()),
            "media_references": len(set(references)),
            "missing_media": missing,
        }
    )
    if not result.ok or missing:
        raise typer.Exit(code=1)


def _media_references(document: dict) -> Iterable[str]:
    from pydantic import ValidationError

    from schemas.records import normalize_payment

    payments = document.get("payments")
    for raw in payments if isinstance(payments, list) else []:
        if not isinstance(raw, dict):
            continue
        try:
            yield from normalize_payment(raw).attachments
        except ValidationError:
            continue


def _parse_invoked_subcommand() -> str | None:
    completion_args = os.getenv("_TYPER_COMPLETE_ARGS")
    tokens: list[str]
    if completion_args:
        try:
            tokens = shlex.split(completion_args)
        except ValueError:
            tokens = completion_args.split()
        if tokens:
            tokens = tokens[1:]
    else:
        tokens = sys.argv[1:]

    skip_next = False
    for token in tokens:
        if skip_next:
            skip_next = False
            continue
        if token in _SUBCOMMAND_NAMES:
            return token
        if token == "--data-dir":
            skip_next = True
            continue
        if token.startswith("-"):
            continue
        break
    return None


def _register_subcommands(*, eager: bool = False) -> None:
    global _SUBCOMMANDS_REGISTERED
    if _SUBCOMMANDS_REGISTERED:
        return

    selected = None if eager else _parse_invoked_subcommand()
    for name, module_path, help_text in _SUBCOMMAND_SPECS:
        if eager or selected == name:
            module = import_module(module_path)
            app.add_typer(module.app, name=name)
            continue
        app.add_typer(
            typer.Typer(
                help=help_text,
                add_completion=False,
                no_args_is_help=True,
            ),
            name=name,
        )

    _SUBCOMMANDS_REGISTERED = True


def build_app() -> typer.Typer:
    """Return the application with every command group loaded."""
    _register_subcommands(eager=True)
    return app


def main() -> None:
    _register_subcommands()
    app()


__all__ = ["app", "build_app", "main"]
