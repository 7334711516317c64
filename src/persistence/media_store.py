"""Managed media directory for photos and voice notes."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Iterable
from urllib.parse import unquote, urlparse

from persistence.hashing import files_identical

logger = logging.getLogger(__name__)

MEDIA_DIRNAME = "media"

_FILE_SCHEME = "file://"
_REMOTE_PREFIXES = ("content://", "http://", "https://")


def normalize_location(location: str) -> str:
    """Return a `file://` form for scheme-less paths; URIs pass through."""
    if location.startswith(_FILE_SCHEME) or location.startswith(_REMOTE_PREFIXES):
        return location
    return Path(location).expanduser().absolute().as_uri()


def _local_path(uri: str) -> Path:
    return Path(unquote(urlparse(uri).path))


class MediaStore:
    """Copies media into `<root>/media/` and hands out `media/<name>` ids."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._media_dir = self._root / MEDIA_DIRNAME

    @property
    def root(self) -> Path:
        return self._root

    @property
    def media_dir(self) -> Path:
        return self._media_dir

    def ensure_dir(self) -> Path:
        self._media_dir.mkdir(parents=True, exist_ok=True)
        return self._media_dir

    def save(self, source: str | os.PathLike[str] | None) -> str | None:
        """Copy `source` into the media directory and return its relative id.

        Returns None for empty input, for sources that are missing or not
        local files, and for copy failures.
        """
        if not source:
            return None
        location = normalize_location(os.fspath(source))
        if location.startswith(_REMOTE_PREFIXES):
            logger.warning("Media source is not a local file: %s", location)
            return None

        source_path = _local_path(location)
        if not source_path.is_file():
            logger.warning("Media source file not found: %s", location)
            return None

        filename = source_path.name
        relative_id = f"{MEDIA_DIRNAME}/{filename}"
        target = self._media_dir / filename
        try:
            if target.exists() and (
                source_path.resolve() == target.resolve() or files_identical(source_path, target)
            ):
                return relative_id
            self.ensure_dir()
            shutil.copyfile(source_path, target)
        except shutil.SameFileError:
            return relative_id
        except OSError:
            logger.exception("Media save failed for %s", location)
            return None
        return relative_id

    def resolve(self, relative_id: str | None) -> Path | None:
        if not relative_id:
            return None
        return self._root / relative_id

    def list_files(self) -> list[Path]:
        if not self._media_dir.is_dir():
            return []
        return sorted(path for path in self._media_dir.iterdir() if path.is_file())

    def find_missing(self, references: Iterable[str | None]) -> list[str]:
        """Return referenced ids with no file behind them, in first-seen order."""
        missing: list[str] = []
        for reference in references:
            if not reference or reference in missing:
                continue
            path = self.resolve(reference)
            if path is None or not path.is_file():
                missing.append(reference)
        return missing


__all__ = ["MEDIA_DIRNAME", "MediaStore", "normalize_location"]
