"""Worker roster commands."""

from __future__ import annotations

import typer

from cli.common import build_ledger, emit_json, ledger_errors
from .shared import make_app, print_table

app = make_app("Manage the worker roster")


@app.command("list", help="List workers")
def list_workers(
    ctx: typer.Context,
    json_out: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    workers = build_ledger(ctx).list_workers()
    if json_out:
        emit_json(workers)
        return
    print_table("Workers", ["Name"], ([name] for name in workers))


@app.command("add", help="Add a worker")
def add_worker(ctx: typer.Context, name: str = typer.Argument(...)) -> None:
    with ledger_errors():
        build_ledger(ctx).add_worker(name)
    typer.echo(f"Added {name.strip()}")


@app.command("rename", help="Rename a worker and their attendance history")
def rename_worker(
    ctx: typer.Context,
    old: str = typer.Argument(...),
    new: str = typer.Argument(...),
) -> None:
    with ledger_errors():
        touched = build_ledger(ctx).rename_worker(old, new)
    typer.echo(f"Renamed {old} -> {new.strip()} ({touched} attendance records updated)")


@app.command("remove", help="Remove one or more workers")
def remove_workers(
    ctx: typer.Context,
    names: list[str] = typer.Argument(...),
    purge_attendance: bool = typer.Option(
        False,
        "--purge-attendance",
        help="Also delete their attendance records",
    ),
) -> None:
    with ledger_errors():
        purged = build_ledger(ctx).remove_workers(names, purge_attendance=purge_attendance)
    typer.echo(f"Removed {', '.join(names)} ({purged} attendance records deleted)")
