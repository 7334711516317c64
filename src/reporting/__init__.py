"""Reporting module exports."""

from __future__ import annotations

from reporting.context import build_attendance_context
from reporting.html import generate_attendance_report, render_attendance_html

__all__ = [
    "build_attendance_context",
    "generate_attendance_report",
    "render_attendance_html",
]
