"""Hashing helpers for media comparison."""

from __future__ import annotations

import hashlib
from pathlib import Path


def sha256_file(path: str | Path, *, chunk_size: int = 1024 * 1024) -> str:
    """Return sha256 of a file by streaming."""
    hasher = hashlib.sha256()
    with Path(path).open("rb") as handle:
        while True:
            chunk = handle.read(chunk_size)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.hexdigest()


def files_identical(left: str | Path, right: str | Path) -> bool:
    """True when both files exist with the same size and content hash."""
    left_path, right_path = Path(left), Path(right)
    if not (left_path.is_file() and right_path.is_file()):
        return False
    if left_path.stat().st_size != right_path.stat().st_size:
        return False
    return sha256_file(left_path) == sha256_file(right_path)


__all__ = ["files_identical", "sha256_file"]
