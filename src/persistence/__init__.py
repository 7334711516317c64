"""Persistence subsystem exports."""

from persistence.archive import BackupArchiver
from persistence.document_store import DocumentStore, DocumentUnreadableError
from persistence.media_store import MediaStore
from persistence.models import LoadResult, RestoreOutcome
from persistence.restore import RestoreEngine

__all__ = [
    "BackupArchiver",
    "DocumentStore",
    "DocumentUnreadableError",
    "LoadResult",
    "MediaStore",
    "RestoreEngine",
    "RestoreOutcome",
]
