"""Platform collaborator contracts consumed by the store."""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Protocol, Sequence

from persistence.models import PickedFile

NotifyLevel = Literal["info", "warning", "error"]

BACKUP_CONTENT_TYPES = (
    "application/zip",
    "application/x-zip-compressed",
    "application/json",
)


class ShareTarget(Protocol):
    def is_available(self) -> bool: ...

    def share(self, path: Path, *, display_name: str) -> None: ...


class FilePicker(Protocol):
    def pick(self, content_types: Sequence[str]) -> PickedFile | None: ...


class Notifier(Protocol):
    def notify(self, message: str, *, level: NotifyLevel = "info") -> None: ...


__all__ = [
    "BACKUP_CONTENT_TYPES",
    "FilePicker",
    "Notifier",
    "NotifyLevel",
    "ShareTarget",
]
