from pathlib import Path

from persistence.media_store import MediaStore, normalize_location


def test_save_none_or_empty_is_noop(tmp_path: Path) -> None:
    media = MediaStore(tmp_path)
    assert media.save(None) is None
    assert media.save("") is None
    assert not media.media_dir.exists()


def test_save_copies_into_media_dir(tmp_path: Path, make_file) -> None:
    source = make_file("photo.jpg", b"jpeg-bytes")
    media = MediaStore(tmp_path / "data")

    relative_id = media.save(str(source))

    assert relative_id == "media/photo.jpg"
    stored = media.media_dir / "photo.jpg"
    assert stored.read_bytes() == b"jpeg-bytes"
    assert media.resolve(relative_id) == stored


def test_save_accepts_file_uri(tmp_path: Path, make_file) -> None:
    source = make_file("note.m4a", b"audio")
    media = MediaStore(tmp_path / "data")

    assert media.save(source.as_uri()) == "media/note.m4a"


def test_save_missing_source_returns_none(tmp_path: Path) -> None:
    media = MediaStore(tmp_path / "data")
    assert media.save(str(tmp_path / "missing.jpg")) is None


def test_save_remote_source_returns_none(tmp_path: Path) -> None:
    media = MediaStore(tmp_path / "data")
    assert media.save("content://media/external/images/1") is None
    assert media.save("https://example.com/a.jpg") is None


def test_save_is_idempotent(tmp_path: Path, make_file) -> None:
    source = make_file("photo.jpg", b"first")
    media = MediaStore(tmp_path / "data")

    first = media.save(str(source))
    stored = media.media_dir / "photo.jpg"
    mtime = stored.stat().st_mtime_ns

    second = media.save(str(source))

    assert first == second == "media/photo.jpg"
    assert stored.stat().st_mtime_ns == mtime
    assert stored.read_bytes() == b"first"


def test_resave_of_managed_file_skips_copy(tmp_path: Path, make_file) -> None:
    media = MediaStore(tmp_path / "data")
    media.save(str(make_file("photo.jpg", b"kept")))
    managed = media.media_dir / "photo.jpg"

    assert media.save(str(managed)) == "media/photo.jpg"
    assert media.save(managed.as_uri()) == "media/photo.jpg"
    assert managed.read_bytes() == b"kept"


def test_resolve_is_pure_join(tmp_path: Path) -> None:
    media = MediaStore(tmp_path)
    assert media.resolve(None) is None
    assert media.resolve("media/x.jpg") == tmp_path / "media" / "x.jpg"


def test_normalize_location_adds_file_scheme(tmp_path: Path) -> None:
    path = tmp_path / "a b.jpg"
    assert normalize_location(str(path)).startswith("file://")
    assert normalize_location("file:///tmp/a.jpg") == "file:///tmp/a.jpg"
    assert normalize_location("content://x/y") == "content://x/y"


def test_find_missing_and_list_files(tmp_path: Path, make_file) -> None:
    media = MediaStore(tmp_path / "data")
    media.save(str(make_file("b.jpg")))
    media.save(str(make_file("a.jpg")))

    assert [path.name for path in media.list_files()] == ["a.jpg", "b.jpg"]
    assert media.find_missing(["media/a.jpg", "media/gone.jpg", "media/gone.jpg", None]) == [
        "media/gone.jpg"
    ]
