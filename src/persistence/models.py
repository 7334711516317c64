"""Lightweight persistence records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Literal

LoadStatus = Literal["ok", "recovered", "fatal"]
RestoreStatus = Literal["unchanged", "merged", "replaced"]


@dataclass(frozen=True)
class LoadResult:
    """Outcome of reading the live document.

    `recovered` and `fatal` both carry a default document so callers can keep
    working; the status tells an empty-because-new dataset apart from one
    that could not be read.
    """

    status: LoadStatus
    document: dict[str, Any]
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


@dataclass(frozen=True)
class PickedFile:
    path: Path
    name: str


@dataclass(frozen=True)
class BackupArtifact:
    path: Path
    display_name: str
    media_count: int
    bytes: int
    created_at: datetime


@dataclass
class MergeReport:
    added: dict[str, int] = field(default_factory=dict)
    media_written: list[str] = field(default_factory=list)
    media_skipped: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "added": dict(self.added),
            "media_written": list(self.media_written),
            "media_skipped": list(self.media_skipped),
        }


@dataclass(frozen=True)
class RestoreOutcome:
    status: RestoreStatus
    message: str
    report: MergeReport | None = None
    canceled: bool = False

    @property
    def ok(self) -> bool:
        return self.status != "unchanged"


__all__ = [
    "BackupArtifact",
    "LoadResult",
    "LoadStatus",
    "MergeReport",
    "PickedFile",
    "RestoreOutcome",
    "RestoreStatus",
]
