"""Payment type and category management commands."""

from __future__ import annotations

import typer

from cli.common import build_ledger, emit_json, ledger_errors
from .shared import make_app, print_table

app = make_app("Manage payment types and categories")

_KINDS = {
    "types": "payment_types",
    "categories": "payment_categories",
}


def _collection(kind: str) -> str:
    try:
        return _KINDS[kind.strip().lower()]
    except KeyError:
        raise typer.BadParameter(f"KIND must be one of: {', '.join(_KINDS)}") from None


@app.command("list", help="List entries")
def list_entries(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="types|categories"),
    json_out: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    entries = build_ledger(ctx).list_entries(_collection(kind))
    if json_out:
        emit_json(entries)
        return
    print_table(kind.capitalize(), ["Name"], ([entry] for entry in entries))


@app.command("add", help="Add an entry")
def add_entry(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="types|categories"),
    value: str = typer.Argument(...),
) -> None:
    with ledger_errors():
        build_ledger(ctx).add_entry(_collection(kind), value)
    typer.echo(f"Added {value.strip()}")


@app.command("rename", help="Rename an entry and every payment using it")
def rename_entry(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="types|categories"),
    old: str = typer.Argument(...),
    new: str = typer.Argument(...),
) -> None:
    with ledger_errors():
        touched = build_ledger(ctx).rename_entry(_collection(kind), old, new)
    typer.echo(f"Renamed {old} -> {new.strip()} ({touched} payments updated)")


@app.command("remove", help="Remove entries; past payments keep their value unless reassigned")
def remove_entries(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="types|categories"),
    values: list[str] = typer.Argument(...),
    reassign_to: str | None = typer.Option(
        None,
        "--reassign-to",
        help="Move payments using a removed entry to this existing entry",
    ),
) -> None:
    with ledger_errors():
        moved = build_ledger(ctx).remove_entries(
            _collection(kind), values, reassign_to=reassign_to
        )
    typer.echo(f"Removed {', '.join(values)} ({moved} payments reassigned)")
