import json
import threading
from pathlib import Path

import pytest

from persistence.document_store import DocumentStore, DocumentUnreadableError


def test_initialize_writes_default_document(tmp_path: Path) -> None:
    store = DocumentStore(tmp_path, payment_types=["General"], payment_categories=["Seeds"])

    assert store.initialize()
    assert store.media.media_dir.is_dir()

    document = json.loads(store.path.read_text(encoding="utf-8"))
    assert document["meta"]["version"] == 1
    assert document["meta"]["created_at"]
    assert document["payment_types"] == ["General"]
    assert document["payment_categories"] == ["Seeds"]
    for name in ("payments", "workers", "attendance"):
        assert document[name] == []


def test_initialize_is_idempotent(store: DocumentStore) -> None:
    store.set_collection("workers", ["Raj"])
    assert store.initialize()
    assert store.get_collection("workers") == ["Raj"]


def test_append_scenario(store: DocumentStore) -> None:
    payment = {
        "id": "1",
        "amount": 100,
        "type": "Expense",
        "category": "Seeds",
        "date": "2024-01-01T00:00:00Z",
        "images": [],
        "audioUris": [],
    }

    store.append("payments", payment)

    payments = store.get_collection("payments")
    assert len(payments) == 1
    assert payments[0] == payment


def test_append_inserts_newest_first(store: DocumentStore) -> None:
    store.append("payments", {"id": "1"})
    result = store.append("payments", {"id": "2"})
    assert [item["id"] for item in result] == ["2", "1"]


def test_missing_collection_reads_empty(store: DocumentStore) -> None:
    assert store.get_collection("does_not_exist") == []


def test_update_by_id_patches_first_match(store: DocumentStore) -> None:
    store.set_collection("attendance", [{"id": "a", "duration": "Half Day (4h)"}, {"id": "b"}])

    result = store.update_by_id("attendance", "id", "a", {"duration": "Full Day (8h)"})

    assert result[0] == {"id": "a", "duration": "Full Day (8h)"}
    assert result[1] == {"id": "b"}
    assert store.get_collection("attendance") == result


def test_remove_by_id_filters_all_matches(store: DocumentStore) -> None:
    store.set_collection("payments", [{"id": "x"}, {"id": "y"}, {"id": "x"}])
    assert store.remove_by_id("payments", "id", "x") == [{"id": "y"}]


def test_round_trip(store: DocumentStore) -> None:
    document = {
        "meta": {"version": 1, "created_at": "2024-01-01T00:00:00.000Z"},
        "payment_types": ["Income", "Expense"],
        "payment_categories": ["Seeds"],
        "payments": [{"id": "1", "amount": 5.5, "type": "Expense", "category": "Seeds",
                      "date": "2024-01-01T00:00:00Z", "images": ["media/a.jpg"], "audioUris": []}],
        "workers": ["Raj", "Éva"],
        "attendance": [{"id": "2", "workerName": "Raj", "duration": "Full Day (8h)",
                        "date": "2024-01-02T00:00:00Z"}],
    }
    assert store.save(document)
    assert store.load() == document


def test_corrupt_document_recovers_with_defaults(store: DocumentStore) -> None:
    store.path.write_text("{not json", encoding="utf-8")

    result = store.load_result()

    assert result.status == "recovered"
    assert not result.ok
    assert result.error
    assert result.document["payments"] == []
    assert store.get_collection("payments") == []


def test_missing_document_is_recovered(tmp_path: Path) -> None:
    store = DocumentStore(tmp_path)
    result = store.load_result()
    assert result.status == "recovered"
    assert result.document["payment_types"] == ["Income", "Expense"]


def test_non_object_root_is_recovered(store: DocumentStore) -> None:
    store.path.write_text("[1, 2]", encoding="utf-8")
    assert store.load_result().status == "recovered"


def test_load_upgrades_grouped_payment_types(store: DocumentStore) -> None:
    store.path.write_text(
        json.dumps({"payment_types": {"expenses": ["Seeds"], "incomes": ["Crop sale", "Seeds"]},
                    "payments": []}),
        encoding="utf-8",
    )
    assert store.get_collection("payment_types") == ["Seeds", "Crop sale"]


def test_write_failure_is_logged_not_raised(store: DocumentStore, monkeypatch) -> None:
    def _fail(payload: bytes) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(store, "_write_bytes", _fail)

    assert store.set_collection("workers", ["Raj"]) is False
    result = store.append("workers", "Mina")
    assert result == ["Mina"]
    assert store.get_collection("workers") == []


def test_transaction_error_writes_nothing(store: DocumentStore) -> None:
    store.set_collection("workers", ["Raj"])
    try:
        with store.transaction() as session:
            session.document["workers"] = []
            raise RuntimeError("boom")
    except RuntimeError:
        pass
    assert store.get_collection("workers") == ["Raj"]


def test_write_raw_is_verbatim(store: DocumentStore) -> None:
    content = b'{"payment_types": [], "payments": []}'
    assert store.write_raw(content)
    assert store.read_raw() == content


def test_atomic_write_leaves_no_temp_files(store: DocumentStore) -> None:
    store.set_collection("workers", ["Raj"])
    leftovers = [path.name for path in store.root.iterdir() if path.name.endswith(".tmp")]
    assert leftovers == []


def test_concurrent_appends_do_not_lose_updates(data_dir: Path) -> None:
    DocumentStore(data_dir).initialize()

    def _worker(offset: int) -> None:
        store = DocumentStore(data_dir)
        for index in range(10):
            store.append("payments", {"id": f"{offset}-{index}"})

    threads = [threading.Thread(target=_worker, args=(offset,)) for offset in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(DocumentStore(data_dir).get_collection("payments")) == 40


def test_mutators_never_overwrite_unreadable_document(store: DocumentStore) -> None:
    corrupt = '{"payments": [{"id": "keep", "amount": 1}], "payment_types": ['
    store.path.write_text(corrupt, encoding="utf-8")

    assert store.append("payments", {"id": "new"}) == []
    assert store.update_by_id("payments", "id", "keep", {"amount": 2}) == []
    assert store.remove_by_id("payments", "id", "keep") == []
    assert store.set_collection("workers", ["Raj"]) is False
    with pytest.raises(DocumentUnreadableError):
        with store.transaction():
            pass

    assert store.path.read_text(encoding="utf-8") == corrupt


def test_non_object_root_is_not_overwritten(store: DocumentStore) -> None:
    store.path.write_text("[1, 2]", encoding="utf-8")

    assert store.set_collection("workers", ["Raj"]) is False
    assert store.path.read_text(encoding="utf-8") == "[1, 2]"


def test_missing_document_starts_from_defaults(tmp_path: Path) -> None:
    store = DocumentStore(tmp_path / "fresh")

    assert store.append("workers", "Raj") == ["Raj"]
    assert store.load_result().ok
    assert store.get_collection("payment_types") == ["Income", "Expense"]
