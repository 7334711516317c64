"""HTML attendance report renderer."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from jinja2 import Environment, FileSystemLoader, select_autoescape

from reporting.context import build_attendance_context
from schemas.records import AttendanceRecord


def render_attendance_html(
    records: Iterable[AttendanceRecord],
    *,
    worker_name: str | None = None,
) -> str:
    template_dir = Path(__file__).parent / "templates"
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html"]),
    )
    template = env.get_template("attendance.html")
    context = build_attendance_context(records, worker_name=worker_name)
    return template.render(**context)


def generate_attendance_report(
    records: Iterable[AttendanceRecord],
    output_path: Path,
    *,
    worker_name: str | None = None,
) -> None:
    """Write the printable attendance table to `output_path`."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        render_attendance_html(records, worker_name=worker_name),
        encoding="utf-8",
    )


__all__ = ["generate_attendance_report", "render_attendance_html"]
