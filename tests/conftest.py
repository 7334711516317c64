# tests/conftest.py
from __future__ import annotations

from pathlib import Path

import pytest

from persistence.document_store import DocumentStore
from persistence.platform import DirectoryShareTarget, LoggingNotifier
from services.ledger import LedgerService


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def store(data_dir: Path) -> DocumentStore:
    store = DocumentStore(data_dir)
    assert store.initialize()
    return store


@pytest.fixture
def ledger(store: DocumentStore) -> LedgerService:
    return LedgerService(store)


@pytest.fixture
def notifier() -> LoggingNotifier:
    return LoggingNotifier()


@pytest.fixture
def share_target(tmp_path: Path) -> DirectoryShareTarget:
    return DirectoryShareTarget(tmp_path / "shared")


@pytest.fixture
def make_file(tmp_path: Path):
    def _make(name: str, content: bytes = b"data", folder: str = "camera") -> Path:
        path = tmp_path / folder / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _make
