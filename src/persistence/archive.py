"""Backup archive assembly and hand-off."""

from __future__ import annotations

import logging
import zipfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from persistence.contracts import Notifier, ShareTarget
from persistence.document_store import DB_FILENAME, DocumentStore
from persistence.media_store import MEDIA_DIRNAME
from persistence.models import BackupArtifact

logger = logging.getLogger(__name__)

DEFAULT_BACKUP_PREFIX = "AgriLedger_Backup"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def backup_filename(prefix: str, moment: datetime) -> str:
    day = moment.astimezone(timezone.utc).date().isoformat()
    return f"{prefix}_{day}.zip"


def write_archive(store: DocumentStore, target: Path) -> int:
    """Write `db.json` verbatim plus every media file into a zip at `target`.

    Media older than 1980 is stored with the earliest zip timestamp. Returns
    the number of media files embedded; raises OSError.
    """
    db_bytes = store.read_raw()
    media_files = store.media.list_files()
    target.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(
        target,
        "w",
        compression=zipfile.ZIP_DEFLATED,
        strict_timestamps=False,
    ) as archive:
        archive.writestr(DB_FILENAME, db_bytes)
        if store.media.media_dir.is_dir():
            archive.writestr(zipfile.ZipInfo(f"{MEDIA_DIRNAME}/"), b"")
            for path in media_files:
                archive.write(path, f"{MEDIA_DIRNAME}/{path.name}")
    return len(media_files)


class BackupArchiver:
    def __init__(
        self,
        store: DocumentStore,
        share: ShareTarget,
        notifier: Notifier,
        *,
        staging_dir: str | Path,
        prefix: str = DEFAULT_BACKUP_PREFIX,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._share = share
        self._notifier = notifier
        self._staging_dir = Path(staging_dir)
        self._prefix = prefix
        self._clock = clock

    def export_backup(self) -> BackupArtifact | None:
        """Package the live dataset and hand it to the share target.

        Returns None, after notifying the user, when sharing is unavailable
        or any step fails.
        """
        if not self._share.is_available():
            self._notifier.notify("Sharing is not available", level="error")
            return None

        created_at = self._clock()
        display_name = backup_filename(self._prefix, created_at)
        target = self._staging_dir / display_name
        try:
            media_count = write_archive(self._store, target)
            artifact = BackupArtifact(
                path=target,
                display_name=display_name,
                media_count=media_count,
                bytes=target.stat().st_size,
                created_at=created_at,
            )
            self._share.share(target, display_name=display_name)
        except (OSError, ValueError, zipfile.BadZipFile):
            logger.exception("Backup export failed")
            target.unlink(missing_ok=True)
            self._notifier.notify("Failed to export backup", level="error")
            return None

        logger.info("Exported %s with %d media files", display_name, media_count)
        return artifact


__all__ = ["BackupArchiver", "DEFAULT_BACKUP_PREFIX", "backup_filename", "write_archive"]
