"""Restore of backups: destructive legacy JSON replace and archive merge."""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
import zipfile
from pathlib import Path, PurePosixPath
from typing import Any, Mapping

from persistence.contracts import BACKUP_CONTENT_TYPES, FilePicker, Notifier
from persistence.document_store import DB_FILENAME, DocumentStore, DocumentUnreadableError
from persistence.media_store import MEDIA_DIRNAME
from persistence.models import MergeReport, PickedFile, RestoreOutcome
from schemas.records import (
    ID_COLLECTIONS,
    VALUE_COLLECTIONS,
    has_minimum_shape,
    normalize_document,
)

logger = logging.getLogger(__name__)


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else []


def merge_by_id(current: list[Any], imported: list[Any]) -> tuple[list[Any], int]:
    """Append imported items whose `id` is new; local items always win."""
    merged = list(current)
    known = {item.get("id") for item in current if isinstance(item, Mapping)}
    added = 0
    for item in imported:
        if not isinstance(item, Mapping):
            continue
        item_id = item.get("id")
        if not item_id or item_id in known:
            continue
        merged.append(dict(item))
        known.add(item_id)
        added += 1
    return merged, added


def merge_values(current: list[Any], imported: list[Any]) -> tuple[list[Any], int]:
    """Union of string lists by exact value, local order first."""
    merged = list(current)
    known = {value for value in current if isinstance(value, str)}
    added = 0
    for value in imported:
        if not isinstance(value, str) or value in known:
            continue
        merged.append(value)
        known.add(value)
        added += 1
    return merged, added


def merge_documents(
    live: Mapping[str, Any],
    imported: Mapping[str, Any],
) -> tuple[dict[str, Any], dict[str, int]]:
    """Merge `imported` into `live` without dropping or changing local data."""
    merged = dict(live)
    added: dict[str, int] = {}
    for name in ID_COLLECTIONS:
        merged[name], added[name] = merge_by_id(
            _as_list(live.get(name)), _as_list(imported.get(name))
        )
    for name in VALUE_COLLECTIONS:
        merged[name], added[name] = merge_values(
            _as_list(live.get(name)), _as_list(imported.get(name))
        )
    return merged, added


def _media_entries(archive: zipfile.ZipFile) -> list[tuple[str, zipfile.ZipInfo]]:
    entries: list[tuple[str, zipfile.ZipInfo]] = []
    for info in archive.infolist():
        if info.is_dir():
            continue
        parts = PurePosixPath(info.filename).parts
        if len(parts) != 2 or parts[0] != MEDIA_DIRNAME:
            continue
        entries.append((parts[1], info))
    return entries


def _extract_new(archive: zipfile.ZipFile, info: zipfile.ZipInfo, target: Path) -> bool:
    """Extract one entry to `target` unless a file of that name already exists.

    The entry is fully written to a temp file first and linked into place, so
    a failed read never leaves a truncated file under the final name.
    """
    if target.exists():
        return False
    with tempfile.NamedTemporaryFile(
        dir=target.parent,
        prefix=".import-",
        suffix=".tmp",
        delete=False,
    ) as handle:
        temp_path = Path(handle.name)
    try:
        with archive.open(info) as source, temp_path.open("wb") as sink:
            shutil.copyfileobj(source, sink)
        os.link(temp_path, target)
    except FileExistsError:
        return False
    finally:
        temp_path.unlink(missing_ok=True)
    return True


class RestoreEngine:
    def __init__(
        self,
        store: DocumentStore,
        picker: FilePicker,
        notifier: Notifier,
    ) -> None:
        self._store = store
        self._picker = picker
        self._notifier = notifier

    def import_backup(self) -> RestoreOutcome:
        """Pick a backup file and restore it.

        `.json` files replace the live document; anything else is read as an
        archive and merged. Errors are reported and leave `unchanged`.
        """
        picked = self._picker.pick(BACKUP_CONTENT_TYPES)
        if picked is None:
            return RestoreOutcome("unchanged", "Import canceled", canceled=True)
        try:
            return self.restore_file(picked)
        except Exception as exc:
            logger.exception("Import failed for %s", picked.name)
            message = f"Failed to import backup: {exc}"
            self._notifier.notify(message, level="error")
            return RestoreOutcome("unchanged", message)

    def restore_file(self, picked: PickedFile) -> RestoreOutcome:
        if picked.name.lower().endswith(".json"):
            return self.replace_from_json(picked.path)
        return self.merge_archive(picked.path)

    def replace_from_json(self, path: str | Path) -> RestoreOutcome:
        content = Path(path).read_bytes()
        try:
            parsed = json.loads(content.decode("utf-8"))
        except ValueError:
            parsed = None
        if not has_minimum_shape(parsed):
            return self._reject("Invalid Database File")
        if not self._store.write_raw(content):
            return self._reject("Failed to write database")
        logger.info("Live document replaced from %s", Path(path).name)
        return RestoreOutcome("replaced", "Database replaced")

    def merge_archive(self, path: str | Path) -> RestoreOutcome:
        with zipfile.ZipFile(path) as archive:
            try:
                db_bytes = archive.read(DB_FILENAME)
            except KeyError:
                return self._reject(f"Invalid Backup: No {DB_FILENAME} found")
            try:
                imported = json.loads(db_bytes.decode("utf-8"))
            except ValueError:
                imported = None
            if not has_minimum_shape(imported):
                return self._reject("Invalid Database Structure")
            imported = normalize_document(imported)

            try:
                with self._store.transaction() as session:
                    merged, added = merge_documents(session.document, imported)
                    session.document.clear()
                    session.document.update(merged)
            except DocumentUnreadableError:
                return self._reject("Current database is unreadable; repair or replace it first")
            if not session.saved:
                return self._reject("Failed to write merged database")

            report = MergeReport(added=added)
            media_dir = self._store.media.ensure_dir()
            for name, info in _media_entries(archive):
                if _extract_new(archive, info, media_dir / name):
                    report.media_written.append(name)
                else:
                    report.media_skipped.append(name)

        logger.info(
            "Merged backup %s: added=%s media_written=%d media_skipped=%d",
            Path(path).name,
            added,
            len(report.media_written),
            len(report.media_skipped),
        )
        return RestoreOutcome("merged", "Backup merged", report)

    def _reject(self, message: str) -> RestoreOutcome:
        self._notifier.notify(message, level="error")
        return RestoreOutcome("unchanged", message)


__all__ = [
    "RestoreEngine",
    "merge_by_id",
    "merge_documents",
    "merge_values",
]
