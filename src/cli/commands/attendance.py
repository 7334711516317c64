"""Attendance log commands."""

from __future__ import annotations

from pathlib import Path

import typer

from cli.common import build_ledger, emit_json, ledger_errors
from reporting.html import generate_attendance_report
from schemas.records import DURATION_OPTIONS
from .shared import make_app, print_table

app = make_app("Mark and review worker attendance")


@app.command("mark", help="Log attendance for a worker")
def mark_attendance(
    ctx: typer.Context,
    worker: str = typer.Argument(..., help="Worker name"),
    duration: str = typer.Option(
        DURATION_OPTIONS[0],
        "--duration",
        help=f"One of: {', '.join(DURATION_OPTIONS)}",
    ),
    date: str | None = typer.Option(None, "--date", help="ISO-8601 timestamp (default: now)"),
) -> None:
    with ledger_errors():
        record = build_ledger(ctx).record_attendance(worker, duration, date=date)
    typer.echo(f"Logged {record.duration} for {record.worker_name} ({record.id})")


@app.command("list", help="List attendance, newest first")
def list_attendance(
    ctx: typer.Context,
    worker: str | None = typer.Option(None, "--worker", help="Only this worker"),
    json_out: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    records = build_ledger(ctx).attendance_log(worker)
    if json_out:
        emit_json([record.to_record() for record in records])
        return
    print_table(
        "Attendance",
        ["Id", "Date", "Worker", "Time"],
        ([record.id, record.day, record.worker_name, record.duration] for record in records),
    )


@app.command("dates", help="Days a worker was logged, marked full or partial")
def worker_dates(
    ctx: typer.Context,
    worker: str = typer.Argument(..., help="Worker name"),
) -> None:
    emit_json(build_ledger(ctx).marked_dates(worker))


@app.command("remove", help="Delete one attendance record")
def remove_attendance(
    ctx: typer.Context,
    record_id: str = typer.Argument(..., help="Attendance record id"),
) -> None:
    with ledger_errors():
        removed = build_ledger(ctx).remove_attendance(record_id)
    if not removed:
        raise typer.BadParameter(f"Attendance record {record_id} not found")
    typer.echo(f"Deleted attendance record {record_id}")


@app.command("clear", help="Delete all attendance records of a worker")
def clear_attendance(
    ctx: typer.Context,
    worker: str = typer.Argument(..., help="Worker name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    if not yes:
        typer.confirm(f"Delete ALL attendance data for {worker}?", abort=True)
    with ledger_errors():
        removed = build_ledger(ctx).clear_attendance_for(worker)
    typer.echo(f"Deleted {removed} records for {worker}")


@app.command("report", help="Write a printable HTML attendance report")
def attendance_report(
    ctx: typer.Context,
    output: Path = typer.Option(Path("attendance.html"), "--output", help="HTML file"),
    worker: str | None = typer.Option(None, "--worker", help="Only this worker"),
) -> None:
    records = build_ledger(ctx).attendance_log(worker)
    generate_attendance_report(records, output, worker_name=worker)
    typer.echo(f"Wrote {output}")
