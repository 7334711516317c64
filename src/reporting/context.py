"""Shared context for attendance reports."""

from __future__ import annotations

import datetime
from typing import Any, Iterable

from schemas.records import AttendanceRecord, parse_timestamp

THEME_COLOR = "#497d59"


def _display_date(value: str) -> str:
    try:
        return parse_timestamp(value).date().isoformat()
    except ValueError:
        return value.split("T", 1)[0]


def build_attendance_context(
    records: Iterable[AttendanceRecord],
    *,
    worker_name: str | None = None,
    generated_at: datetime.datetime | None = None,
) -> dict[str, Any]:
    timestamp = generated_at or datetime.datetime.now()
    rows = [
        {
            "date": _display_date(record.date),
            "worker": record.worker_name,
            "duration": record.duration,
        }
        for record in records
        if worker_name is None or record.worker_name == worker_name
    ]
    return {
        "title": f"Attendance Report {worker_name or '(All)'}",
        "rows": rows,
        "generated_at": timestamp.strftime("%Y-%m-%d %H:%M:%S"),
        "theme_color": THEME_COLOR,
    }


__all__ = ["THEME_COLOR", "build_attendance_context"]
