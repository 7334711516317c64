"""Shared helpers for CLI commands."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import typer

from core.config import Settings, get_settings
from persistence.contracts import NotifyLevel
from persistence.document_store import DocumentStore
from services.errors import LedgerError
from services.ledger import LedgerService

_LOGGING_CONFIGURED = False


class TyperNotifier:
    """Echoes user-facing messages; errors go to stderr."""

    def notify(self, message: str, *, level: NotifyLevel = "info") -> None:
        if level == "error":
            typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
        elif level == "warning":
            typer.secho(message, fg=typer.colors.YELLOW, err=True)
        else:
            typer.echo(message)


def configure_logging(level: str) -> None:
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
    )
    _LOGGING_CONFIGURED = True


def resolve_settings(ctx: typer.Context) -> Settings:
    settings = get_settings()
    root = ctx.find_root()
    overrides = root.obj if isinstance(root.obj, dict) else {}
    data_dir = overrides.get("data_dir")
    if data_dir is not None:
        settings = settings.model_copy(update={"data_dir": Path(data_dir)})
    return settings


def build_store(ctx: typer.Context, *, initialize: bool = True) -> DocumentStore:
    store = DocumentStore.from_settings(resolve_settings(ctx))
    if initialize and not store.initialize():
        raise typer.BadParameter(f"Cannot initialize data directory: {store.root}")
    return store


def build_ledger(ctx: typer.Context) -> LedgerService:
    return LedgerService(build_store(ctx))


@contextmanager
def ledger_errors() -> Iterator[None]:
    """Turn rejected ledger operations into CLI usage errors."""
    try:
        yield
    except LedgerError as exc:
        raise typer.BadParameter(str(exc)) from exc


def emit_json(data: Any) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2))


__all__ = [
    "TyperNotifier",
    "build_ledger",
    "build_store",
    "configure_logging",
    "emit_json",
    "ledger_errors",
    "resolve_settings",
]
