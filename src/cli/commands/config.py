"""Configuration inspection commands."""

from __future__ import annotations

import typer

from cli.common import emit_json, resolve_settings
from .shared import make_app

app = make_app("Inspect configuration")


@app.command("show", help="Show the effective configuration")
def show_config(
    ctx: typer.Context,
    json_out: bool = typer.Option(True, "--json/--no-json", help="Output JSON"),
) -> None:
    payload = resolve_settings(ctx).model_dump(mode="json")
    if json_out:
        emit_json(payload)
        return
    for key, value in payload.items():
        typer.echo(f"{key}={value}")
