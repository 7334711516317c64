"""Single JSON document store with collection-level helpers."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

from core.config import Settings
from persistence.media_store import MediaStore
from persistence.models import LoadResult
from schemas.records import default_document, normalize_document

logger = logging.getLogger(__name__)

DB_FILENAME = "db.json"


class DocumentUnreadableError(RuntimeError):
    """The document file exists but cannot be read; it must not be overwritten."""


_LOCKS: dict[Path, threading.RLock] = {}
_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    key = path.absolute()
    with _LOCKS_GUARD:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = threading.RLock()
            _LOCKS[key] = lock
        return lock


def dumps_document(document: Mapping[str, Any]) -> bytes:
    return json.dumps(document, ensure_ascii=False, indent=2).encode("utf-8")


@dataclass
class DocumentSession:
    """Mutable view handed out by `DocumentStore.transaction`."""

    document: dict[str, Any]
    saved: bool = False

    def collection(self, name: str) -> list[Any]:
        """Return the named collection, creating an empty one when absent."""
        value = self.document.get(name)
        if not isinstance(value, list):
            if value is not None:
                logger.warning("Collection %s is not a list; replacing it", name)
            value = []
            self.document[name] = value
        return value


class DocumentStore:
    """Whole-document read-modify-write access to `<root>/db.json`.

    Every mutator runs inside `transaction()`, which holds a lock shared by
    all stores pointing at the same file, so concurrent callers queue.
    """

    def __init__(
        self,
        root: str | Path,
        *,
        media: MediaStore | None = None,
        payment_types: Iterable[str] = ("Income", "Expense"),
        payment_categories: Iterable[str] = ("Seeds", "Fertilizer", "Labor", "Equipment"),
    ) -> None:
        self._root = Path(root)
        self._path = self._root / DB_FILENAME
        self._media = media or MediaStore(self._root)
        self._seed_types = list(payment_types)
        self._seed_categories = list(payment_categories)
        self._lock = _lock_for(self._path)

    @classmethod
    def from_settings(cls, settings: Settings) -> "DocumentStore":
        return cls(
            settings.data_dir,
            payment_types=settings.default_payment_types,
            payment_categories=settings.default_payment_categories,
        )

    @property
    def path(self) -> Path:
        return self._path

    @property
    def root(self) -> Path:
        return self._root

    @property
    def media(self) -> MediaStore:
        return self._media

    def default_document(self) -> dict[str, Any]:
        return default_document(
            payment_types=self._seed_types,
            payment_categories=self._seed_categories,
        )

    def initialize(self) -> bool:
        """Create the media directory and a default document when missing."""
        try:
            self._media.ensure_dir()
            with self._lock:
                if not self._path.exists():
                    self._write_bytes(dumps_document(self.default_document()))
        except OSError:
            logger.exception("Document store initialization failed: %s", self._path)
            return False
        return True

    def load_result(self) -> LoadResult:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return LoadResult("recovered", self.default_document(), "document file missing")
        except OSError as exc:
            logger.exception("Document read failed: %s", self._path)
            return LoadResult("fatal", self.default_document(), str(exc))

        try:
            parsed = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.error("Document parse failed, using defaults: %s", exc)
            return LoadResult("recovered", self.default_document(), str(exc))
        if not isinstance(parsed, dict):
            logger.error("Document root is not an object, using defaults")
            return LoadResult("recovered", self.default_document(), "document root is not an object")
        return LoadResult("ok", normalize_document(parsed))

    def load(self) -> dict[str, Any]:
        return self.load_result().document

    def read_raw(self) -> bytes:
        """Return the document file bytes verbatim; raises OSError."""
        return self._path.read_bytes()

    def save(self, document: Mapping[str, Any]) -> bool:
        with self._lock:
            return self._save(document)

    def write_raw(self, content: bytes) -> bool:
        """Replace the document file with `content` byte for byte."""
        with self._lock:
            try:
                self._write_bytes(content)
            except OSError:
                logger.exception("Document write failed: %s", self._path)
                return False
        return True

    @contextmanager
    def transaction(self) -> Iterator[DocumentSession]:
        """Load, yield for mutation, then persist; nothing is written on error.

        Raises DocumentUnreadableError, before yielding, when the document file
        exists but did not load cleanly. Only a missing file starts from the
        default document.
        """
        with self._lock:
            result = self.load_result()
            if not result.ok and self._path.exists():
                logger.error(
                    "Refusing to modify unreadable document %s: %s", self._path, result.error
                )
                raise DocumentUnreadableError(f"Database file cannot be read: {result.error}")
            session = DocumentSession(result.document)
            yield session
            session.saved = self._save(session.document)

    def get_collection(self, name: str) -> list[Any]:
        value = self.load().get(name)
        if isinstance(value, list):
            return value
        if value is not None:
            logger.warning("Collection %s is not a list; treating as empty", name)
        return []

    def set_collection(self, name: str, items: Iterable[Any]) -> bool:
        try:
            with self.transaction() as session:
                session.document[name] = list(items)
        except DocumentUnreadableError:
            return False
        return session.saved

    def append(self, name: str, item: Any) -> list[Any]:
        try:
            with self.transaction() as session:
                collection = session.collection(name)
                collection.insert(0, item)
        except DocumentUnreadableError:
            return self.get_collection(name)
        return list(collection)

    def update_by_id(
        self,
        name: str,
        id_field: str,
        id_value: Any,
        patch: Mapping[str, Any],
    ) -> list[Any]:
        try:
            with self.transaction() as session:
                collection = session.collection(name)
                for index, item in enumerate(collection):
                    if isinstance(item, dict) and item.get(id_field) == id_value:
                        collection[index] = {**item, **patch}
                        break
        except DocumentUnreadableError:
            return self.get_collection(name)
        return list(collection)

    def remove_by_id(self, name: str, id_field: str, id_value: Any) -> list[Any]:
        try:
            with self.transaction() as session:
                collection = [
                    item
                    for item in session.collection(name)
                    if not (isinstance(item, dict) and item.get(id_field) == id_value)
                ]
                session.document[name] = collection
        except DocumentUnreadableError:
            return self.get_collection(name)
        return list(collection)

    def _save(self, document: Mapping[str, Any]) -> bool:
        try:
            payload = dumps_document(document)
            self._write_bytes(payload)
        except (OSError, TypeError, ValueError):
            logger.exception("Document write failed: %s", self._path)
            return False
        return True

    def _write_bytes(self, payload: bytes) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            dir=self._path.parent,
            prefix=".db-",
            suffix=".tmp",
            delete=False,
        ) as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
            temp_path = Path(handle.name)
        try:
            os.replace(temp_path, self._path)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise


__all__ = [
    "DB_FILENAME",
    "DocumentSession",
    "DocumentStore",
    "DocumentUnreadableError",
    "dumps_document",
]
