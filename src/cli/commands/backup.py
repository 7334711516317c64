"""Backup export and restore commands."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.prompt import Prompt

from cli.common import TyperNotifier, build_store, emit_json, resolve_settings
from persistence.archive import BackupArchiver
from persistence.platform import DirectoryShareTarget, PathPicker
from persistence.restore import RestoreEngine
from .shared import make_app

app = make_app("Export and restore full backups")


@app.command("export", help="Write db.json and all media into a dated zip archive")
def export_backup(
    ctx: typer.Context,
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        help="Where the archive is delivered (default: AGRILEDGER_BACKUP_DIR)",
    ),
    json_out: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    settings = resolve_settings(ctx)
    store = build_store(ctx)
    share = DirectoryShareTarget(output_dir or settings.backup_dir)
    archiver = BackupArchiver(
        store,
        share,
        TyperNotifier(),
        staging_dir=settings.resolved_staging_dir,
        prefix=settings.backup_prefix,
    )
    artifact = archiver.export_backup()
    if artifact is None:
        raise typer.Exit(code=1)

    delivered = share.destination / artifact.display_name
    if json_out:
        emit_json(
            {
                "path": str(delivered),
                "media_count": artifact.media_count,
                "bytes": artifact.bytes,
            }
        )
        return
    typer.echo(f"Backup written: {delivered} ({artifact.media_count} media files)")


@app.command("import", help="Merge a zip backup, or replace the database from a .json file")
def import_backup(
    ctx: typer.Context,
    path: Path | None = typer.Argument(
        None,
        exists=True,
        dir_okay=False,
        readable=True,
        help="Backup file; prompts when omitted (empty answer cancels)",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip the confirmation for destructive .json restores",
    ),
    json_out: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    if path is None:
        answer = Prompt.ask("Backup file (leave empty to cancel)", default="")
        path = Path(answer) if answer.strip() else None

    if path is not None and path.suffix.lower() == ".json" and not yes:
        typer.confirm(
            "A .json backup overwrites the whole database. Continue?",
            abort=True,
        )
    elif path is not None and not json_out:
        typer.echo("Merging backup: existing records and media are kept.")

    engine = RestoreEngine(build_store(ctx), PathPicker(path), TyperNotifier())
    outcome = engine.import_backup()

    if json_out:
        emit_json(
            {
                "status": outcome.status,
                "message": outcome.message,
                "report": outcome.report.as_dict() if outcome.report else None,
            }
        )
    else:
        typer.echo(outcome.message)
        if outcome.report is not None:
            for name, count in outcome.report.added.items():
                typer.echo(f"  {name}: +{count}")
            typer.echo(
                f"  media: {len(outcome.report.media_written)} written, "
                f"{len(outcome.report.media_skipped)} kept"
            )
    if not outcome.ok:
        raise typer.Exit(code=0 if outcome.canceled else 1)
    if not json_out:
        typer.echo("Restart any running session to pick up the restored data.")
