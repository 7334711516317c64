from __future__ import annotations

import json
import zipfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from agriledger import __version__
from cli.app import build_app

runner = CliRunner()


def _invoke(data_dir: Path, *args: str, input: str | None = None):
    return runner.invoke(build_app(), ["--data-dir", str(data_dir), *args], input=input)


def _json(result) -> object:
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


@pytest.fixture
def cli_dir(tmp_path: Path) -> Path:
    return tmp_path / "farm"


def test_version_flag() -> None:
    result = runner.invoke(build_app(), ["--version"])

    assert result.exit_code == 0
    assert result.output.strip() == __version__


def test_init_creates_document_and_media_dir(cli_dir: Path) -> None:
    result = _invoke(cli_dir, "init")

    assert result.exit_code == 0
    document = json.loads((cli_dir / "db.json").read_text(encoding="utf-8"))
    assert document["payment_types"] == ["Income", "Expense"]
    assert document["payments"] == []
    assert (cli_dir / "media").is_dir()


def test_payment_flow_with_attachment(cli_dir: Path, tmp_path: Path) -> None:
    photo = tmp_path / "receipt.jpg"
    photo.write_bytes(b"jpeg")

    added = _invoke(
        cli_dir,
        "payments", "add",
        "--amount", "25",
        "--type", "Expense",
        "--category", "Seeds",
        "--image", str(photo),
        "--date", "2024-05-02T10:00:00Z",
    )
    assert added.exit_code == 0, added.output

    payments = _json(_invoke(cli_dir, "payments", "list", "--json"))
    assert len(payments) == 1
    assert payments[0]["images"] == ["media/receipt.jpg"]
    assert payments[0]["audioUris"] == []
    assert (cli_dir / "media" / "receipt.jpg").read_bytes() == b"jpeg"

    shown = _json(_invoke(cli_dir, "payments", "show", payments[0]["id"]))
    assert shown["attachment_paths"] == [str(cli_dir / "media" / "receipt.jpg")]


def test_invalid_payment_is_a_usage_error(cli_dir: Path) -> None:
    result = _invoke(
        cli_dir, "payments", "add", "--amount", "-3", "--type", "Expense", "--category", "Seeds"
    )

    assert result.exit_code == 2
    assert not json.loads((cli_dir / "db.json").read_text(encoding="utf-8"))["payments"]


def test_unknown_category_is_rejected(cli_dir: Path) -> None:
    result = _invoke(
        cli_dir, "payments", "add", "--amount", "3", "--type", "Expense", "--category", "Toys"
    )

    assert result.exit_code == 2


def test_taxonomy_rename_cascades(cli_dir: Path) -> None:
    _invoke(
        cli_dir, "payments", "add", "--amount", "3", "--type", "Expense", "--category", "Seeds"
    )

    renamed = _invoke(cli_dir, "taxonomy", "rename", "categories", "Seeds", "Seedlings")

    assert renamed.exit_code == 0, renamed.output
    assert "1 payments updated" in renamed.output
    assert _json(_invoke(cli_dir, "taxonomy", "list", "categories", "--json"))[0] == "Seedlings"
    payments = _json(_invoke(cli_dir, "payments", "list", "--json"))
    assert payments[0]["category"] == "Seedlings"


def test_worker_attendance_flow(cli_dir: Path, tmp_path: Path) -> None:
    assert _invoke(cli_dir, "workers", "add", "Raj").exit_code == 0
    marked = _invoke(
        cli_dir, "attendance", "mark", "Raj", "--date", "2024-05-01T08:00:00Z"
    )
    assert marked.exit_code == 0, marked.output
    _invoke(
        cli_dir,
        "attendance", "mark", "Raj",
        "--duration", "Half Day (4h)",
        "--date", "2024-05-02T08:00:00Z",
    )

    records = _json(_invoke(cli_dir, "attendance", "list", "--worker", "Raj", "--json"))
    assert [record["date"] for record in records] == [
        "2024-05-02T08:00:00Z",
        "2024-05-01T08:00:00Z",
    ]
    assert _json(_invoke(cli_dir, "attendance", "dates", "Raj")) == {
        "2024-05-02": "partial",
        "2024-05-01": "full",
    }

    report = tmp_path / "report.html"
    assert _invoke(cli_dir, "attendance", "report", "--output", str(report)).exit_code == 0
    assert "Attendance Report (All)" in report.read_text(encoding="utf-8")

    cleared = _invoke(cli_dir, "attendance", "clear", "Raj", "--yes")
    assert "Deleted 2 records" in cleared.output


def test_marking_unknown_worker_fails(cli_dir: Path) -> None:
    result = _invoke(cli_dir, "attendance", "mark", "Ghost")

    assert result.exit_code == 2


def test_backup_export_then_merge_into_other_device(cli_dir: Path, tmp_path: Path) -> None:
    photo = tmp_path / "cow.jpg"
    photo.write_bytes(b"moo")
    _invoke(cli_dir, "workers", "add", "Mina")
    _invoke(
        cli_dir,
        "payments", "add",
        "--amount", "7",
        "--type", "Income",
        "--category", "Labor",
        "--image", str(photo),
    )

    exported = _json(
        _invoke(cli_dir, "backup", "export", "--output-dir", str(tmp_path / "out"), "--json")
    )
    archive_path = Path(exported["path"])
    assert exported["media_count"] == 1
    with zipfile.ZipFile(archive_path) as archive:
        assert "db.json" in archive.namelist()

    other = tmp_path / "other"
    _invoke(other, "workers", "add", "Raj")
    merged = _json(_invoke(other, "backup", "import", str(archive_path), "--json"))

    assert merged["status"] == "merged"
    assert merged["report"]["added"]["payments"] == 1
    assert _json(_invoke(other, "workers", "list", "--json")) == ["Raj", "Mina"]
    assert (other / "media" / "cow.jpg").read_bytes() == b"moo"


def test_json_import_requires_confirmation(cli_dir: Path, tmp_path: Path) -> None:
    _invoke(cli_dir, "workers", "add", "Raj")
    legacy = tmp_path / "db.json"
    legacy.write_text('{"payment_types": ["General"], "payments": []}', encoding="utf-8")

    declined = _invoke(cli_dir, "backup", "import", str(legacy), input="n\n")
    assert declined.exit_code == 1
    assert _json(_invoke(cli_dir, "workers", "list", "--json")) == ["Raj"]

    replaced = _invoke(cli_dir, "backup", "import", str(legacy), "--yes")
    assert replaced.exit_code == 0, replaced.output
    assert _json(_invoke(cli_dir, "workers", "list", "--json")) == []
    assert _json(_invoke(cli_dir, "taxonomy", "list", "types", "--json")) == ["General"]


def test_import_prompt_can_be_canceled(cli_dir: Path) -> None:
    _invoke(cli_dir, "init")
    before = (cli_dir / "db.json").read_bytes()

    result = _invoke(cli_dir, "backup", "import", input="\n")

    assert result.exit_code == 0
    assert "Import canceled" in result.output
    assert (cli_dir / "db.json").read_bytes() == before


def test_doctor_reports_missing_media(cli_dir: Path, tmp_path: Path) -> None:
    photo = tmp_path / "gone.jpg"
    photo.write_bytes(b"x")
    _invoke(
        cli_dir,
        "payments", "add",
        "--amount", "1",
        "--type", "Expense",
        "--category", "Seeds",
        "--image", str(photo),
    )
    assert _invoke(cli_dir, "doctor").exit_code == 0

    (cli_dir / "media" / "gone.jpg").unlink()
    result = _invoke(cli_dir, "doctor")

    assert result.exit_code == 1
    assert json.loads(result.output)["missing_media"] == ["media/gone.jpg"]


def test_config_show_reflects_data_dir(cli_dir: Path) -> None:
    payload = _json(_invoke(cli_dir, "config", "show"))

    assert payload["data_dir"] == str(cli_dir)
