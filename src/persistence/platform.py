"""Filesystem-backed adapters for the share, picker and notifier contracts."""

from __future__ import annotations

import logging
import mimetypes
import os
import shutil
from pathlib import Path
from typing import Sequence

from persistence.contracts import NotifyLevel
from persistence.models import PickedFile

logger = logging.getLogger(__name__)

_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class DirectoryShareTarget:
    """Shares an artifact by copying it into a destination directory."""

    def __init__(self, destination: str | Path) -> None:
        self._destination = Path(destination)
        self.shared: list[Path] = []

    @property
    def destination(self) -> Path:
        return self._destination

    def is_available(self) -> bool:
        try:
            self._destination.mkdir(parents=True, exist_ok=True)
        except OSError:
            logger.warning("Share destination unavailable: %s", self._destination)
            return False
        return os.access(self._destination, os.W_OK)

    def share(self, path: Path, *, display_name: str) -> None:
        target = self._destination / display_name
        if Path(path).absolute() != target.absolute():
            shutil.copyfile(path, target)
        self.shared.append(target)
        logger.info("Shared %s to %s", display_name, target)


class PathPicker:
    """Returns a preselected file; no path means the user canceled."""

    def __init__(self, path: str | Path | None) -> None:
        self._path = Path(path) if path else None

    def pick(self, content_types: Sequence[str]) -> PickedFile | None:
        if self._path is None:
            return None
        guessed, _ = mimetypes.guess_type(self._path.name)
        if guessed and content_types and guessed not in content_types:
            logger.warning("Picked file %s has unexpected type %s", self._path.name, guessed)
        return PickedFile(path=self._path, name=self._path.name)


class LoggingNotifier:
    """Routes user-facing messages to the module logger."""

    def __init__(self) -> None:
        self.messages: list[tuple[NotifyLevel, str]] = []

    def notify(self, message: str, *, level: NotifyLevel = "info") -> None:
        self.messages.append((level, message))
        logger.log(_LEVELS.get(level, logging.INFO), message)


__all__ = ["DirectoryShareTarget", "LoggingNotifier", "PathPicker"]
