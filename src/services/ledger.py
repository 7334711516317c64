"""Ledger operations for payments, taxonomies, workers and attendance.

Each operation runs as a single store transaction, so a rename and its
cascade into historical records are written together or not at all.
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Mapping

from pydantic import ValidationError

from persistence.document_store import DocumentSession, DocumentStore, DocumentUnreadableError
from persistence.media_store import MEDIA_DIRNAME, MediaStore
from schemas.records import (
    DURATION_OPTIONS,
    AttendanceRecord,
    Payment,
    PaymentDraft,
    normalize_payment,
    now_iso,
    parse_timestamp,
)
from services.errors import LedgerError

logger = logging.getLogger(__name__)

TAXONOMY_FIELDS = {
    "payment_types": "type",
    "payment_categories": "category",
}

_OVERTIME_PATTERN = re.compile(r"^Overtime \(\+\d+h\)$")
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _clean_name(value: str, *, label: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise LedgerError(f"{label} must not be empty")
    return cleaned


def is_valid_duration(duration: str) -> bool:
    return duration in DURATION_OPTIONS or bool(_OVERTIME_PATTERN.match(duration))


def _sort_key(date: str) -> datetime:
    try:
        return parse_timestamp(date)
    except ValueError:
        return _OLDEST


class LedgerService:
    def __init__(
        self,
        store: DocumentStore,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._clock = clock

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def media(self) -> MediaStore:
        return self._store.media

    # Payments

    def add_payment(
        self,
        *,
        amount: float,
        type: str,
        category: str,
        images: Iterable[str] = (),
        audio: Iterable[str] = (),
        date: str | None = None,
        payment_id: str | None = None,
    ) -> Payment:
        draft = self._draft(
            amount=amount,
            type=type,
            category=category,
            date=date or now_iso(),
            images=list(images),
            audio_uris=list(audio),
        )
        with self._transaction() as session:
            self._require_member(session, "payment_types", draft.type, "Payment type")
            self._require_member(session, "payment_categories", draft.category, "Category")
            payments = session.collection("payments")
            existing = {item.get("id") for item in payments if isinstance(item, Mapping)}
            if payment_id is not None and payment_id in existing:
                raise LedgerError(f"Payment {payment_id} already exists")
            payment = Payment.model_validate(
                {
                    "id": payment_id or self._new_id(existing),
                    "amount": draft.amount,
                    "type": draft.type,
                    "category": draft.category,
                    "date": draft.date,
                    "images": self._save_media(draft.images),
                    "audioUris": self._save_media(draft.audio_uris),
                }
            )
            payments.insert(0, payment.to_record())
        return payment

    def update_payment(
        self,
        payment_id: str,
        *,
        amount: float | None = None,
        type: str | None = None,
        category: str | None = None,
        images: Iterable[str] | None = None,
        audio: Iterable[str] | None = None,
        date: str | None = None,
    ) -> Payment:
        with self._transaction() as session:
            payments = session.collection("payments")
            index, raw = self._find(payments, payment_id, label="Payment")
            current = normalize_payment(raw)
            draft = self._draft(
                amount=current.amount if amount is None else amount,
                type=current.type if type is None else type,
                category=current.category if category is None else category,
                date=current.date if date is None else date,
                images=current.images if images is None else list(images),
                audio_uris=current.audio_uris if audio is None else list(audio),
            )
            if draft.type != current.type:
                self._require_member(session, "payment_types", draft.type, "Payment type")
            if draft.category != current.category:
                self._require_member(session, "payment_categories", draft.category, "Category")

            record = {key: value for key, value in raw.items() if key not in ("image", "audioUri")}
            # Untouched attachments keep their ids, dangling or not.
            kept_images = draft.images if images is None else self._save_media(draft.images)
            kept_audio = draft.audio_uris if audio is None else self._save_media(draft.audio_uris)
            record.update(
                amount=draft.amount,
                type=draft.type,
                category=draft.category,
                date=draft.date,
                images=kept_images,
                audioUris=kept_audio,
            )
            updated = normalize_payment(record)
            payments[index] = updated.to_record()
        return updated

    def delete_payment(self, payment_id: str) -> bool:
        return self._remove_record("payments", payment_id)

    def list_payments(self) -> list[Payment]:
        payments: list[Payment] = []
        for raw in self._store.get_collection("payments"):
            if not isinstance(raw, Mapping):
                continue
            try:
                payments.append(normalize_payment(raw))
            except ValidationError as exc:
                logger.warning("Skipping unreadable payment %r: %s", raw.get("id"), exc)
        return payments

    def get_payment(self, payment_id: str) -> Payment | None:
        for payment in self.list_payments():
            if payment.id == payment_id:
                return payment
        return None

    def attachment_paths(self, payment: Payment) -> list[Path]:
        paths = (self.media.resolve(item) for item in payment.attachments)
        return [path for path in paths if path is not None]

    # Taxonomies

    def list_entries(self, collection: str) -> list[str]:
        self._taxonomy_field(collection)
        return [value for value in self._store.get_collection(collection) if isinstance(value, str)]

    def add_entry(self, collection: str, value: str) -> list[str]:
        self._taxonomy_field(collection)
        return self._add_value(collection, _clean_name(value, label="Entry"), label="Entry")

    def rename_entry(self, collection: str, old: str, new: str) -> int:
        """Rename a taxonomy entry and every payment using it; returns payments touched."""
        field_name = self._taxonomy_field(collection)
        new = _clean_name(new, label="Entry")
        if new == old:
            return 0
        with self._transaction() as session:
            self._rename_value(session, collection, old, new, label="Entry")
            return self._cascade(session, "payments", field_name, {old}, new)

    def remove_entries(
        self,
        collection: str,
        values: Iterable[str],
        *,
        reassign_to: str | None = None,
    ) -> int:
        """Remove taxonomy entries; with `reassign_to`, move their payments over.

        Without `reassign_to` historical payments keep the removed value.
        Returns the number of payments reassigned.
        """
        field_name = self._taxonomy_field(collection)
        doomed = set(values)
        with self._transaction() as session:
            entries = session.collection(collection)
            if reassign_to is not None:
                if reassign_to in doomed or reassign_to not in entries:
                    raise LedgerError(f"Cannot reassign to {reassign_to!r}")
            session.document[collection] = [value for value in entries if value not in doomed]
            if reassign_to is None:
                return 0
            return self._cascade(session, "payments", field_name, doomed, reassign_to)

    # Workers

    def list_workers(self) -> list[str]:
        return [value for value in self._store.get_collection("workers") if isinstance(value, str)]

    def add_worker(self, name: str) -> list[str]:
        return self._add_value("workers", _clean_name(name, label="Worker name"), label="Worker")

    def rename_worker(self, old: str, new: str) -> int:
        """Rename a worker and their attendance history; returns records touched."""
        new = _clean_name(new, label="Worker name")
        if new == old:
            return 0
        with self._transaction() as session:
            self._rename_value(session, "workers", old, new, label="Worker")
            return self._cascade(session, "attendance", "workerName", {old}, new)

    def remove_workers(self, names: Iterable[str], *, purge_attendance: bool = False) -> int:
        """Remove workers; returns attendance records purged alongside."""
        doomed = set(names)
        with self._transaction() as session:
            workers = session.collection("workers")
            session.document["workers"] = [name for name in workers if name not in doomed]
            if not purge_attendance:
                return 0
            return self._purge_attendance(session, doomed)

    # Attendance

    def record_attendance(
        self,
        worker_name: str,
        duration: str = DURATION_OPTIONS[0],
        *,
        date: str | None = None,
        record_id: str | None = None,
    ) -> AttendanceRecord:
        if not is_valid_duration(duration):
            raise LedgerError(f"Unknown duration: {duration}")
        date = date or now_iso()
        try:
            parse_timestamp(date)
        except ValueError as exc:
            raise LedgerError(f"Invalid date: {date}") from exc
        with self._transaction() as session:
            self._require_member(session, "workers", worker_name, "Worker")
            attendance = session.collection("attendance")
            existing = {item.get("id") for item in attendance if isinstance(item, Mapping)}
            if record_id is not None and record_id in existing:
                raise LedgerError(f"Attendance record {record_id} already exists")
            record = AttendanceRecord(
                id=record_id or self._new_id(existing),
                workerName=worker_name,
                duration=duration,
                date=date,
            )
            attendance.insert(0, record.to_record())
        return record

    def remove_attendance(self, record_id: str) -> bool:
        return self._remove_record("attendance", record_id)

    def clear_attendance_for(self, worker_name: str) -> int:
        with self._transaction() as session:
            return self._purge_attendance(session, {worker_name})

    def attendance_log(self, worker_name: str | None = None) -> list[AttendanceRecord]:
        records: list[AttendanceRecord] = []
        for raw in self._store.get_collection("attendance"):
            if not isinstance(raw, Mapping):
                continue
            try:
                record = AttendanceRecord.model_validate(raw)
            except ValidationError as exc:
                logger.warning("Skipping unreadable attendance record %r: %s", raw.get("id"), exc)
                continue
            if worker_name is None or record.worker_name == worker_name:
                records.append(record)
        records.sort(key=lambda record: _sort_key(record.date), reverse=True)
        return records

    def logged_worker_names(self) -> list[str]:
        seen: dict[str, None] = {}
        for record in self.attendance_log():
            seen.setdefault(record.worker_name, None)
        return list(seen)

    def marked_dates(self, worker_name: str) -> dict[str, str]:
        """Map each logged day of a worker to `full` or `partial`; full wins."""
        marks: dict[str, str] = {}
        for record in self.attendance_log(worker_name):
            if record.is_full_day:
                marks[record.day] = "full"
            else:
                marks.setdefault(record.day, "partial")
        return marks

    # Helpers

    @contextmanager
    def _transaction(self) -> Iterator[DocumentSession]:
        try:
            with self._store.transaction() as session:
                yield session
        except DocumentUnreadableError as exc:
            raise LedgerError(str(exc)) from exc

    def _remove_record(self, collection: str, record_id: str) -> bool:
        with self._transaction() as session:
            items = session.collection(collection)
            kept = [
                item
                for item in items
                if not (isinstance(item, Mapping) and item.get("id") == record_id)
            ]
            session.document[collection] = kept
        return len(kept) < len(items)

    def _draft(self, **values: Any) -> PaymentDraft:
        try:
            return PaymentDraft.model_validate(values)
        except ValidationError as exc:
            raise LedgerError(str(exc)) from exc

    def _save_media(self, sources: Iterable[str]) -> list[str]:
        saved: list[str] = []
        for source in sources:
            location: str | Path | None = source
            if source.startswith(f"{MEDIA_DIRNAME}/"):
                location = self.media.resolve(source)
            relative_id = self.media.save(location)
            if relative_id is None:
                logger.warning("Attachment not stored: %s", source)
                continue
            saved.append(relative_id)
        return saved

    def _new_id(self, existing: set[Any]) -> str:
        candidate = int(self._clock().timestamp() * 1000)
        while str(candidate) in existing:
            candidate += 1
        return str(candidate)

    @staticmethod
    def _taxonomy_field(collection: str) -> str:
        try:
            return TAXONOMY_FIELDS[collection]
        except KeyError:
            raise LedgerError(f"Not a taxonomy collection: {collection}") from None

    @staticmethod
    def _require_member(session: DocumentSession, collection: str, value: str, label: str) -> None:
        if value not in session.collection(collection):
            raise LedgerError(f"{label} {value!r} does not exist")

    @staticmethod
    def _find(
        items: list[Any], item_id: str, *, label: str
    ) -> tuple[int, dict[str, Any]]:
        for index, item in enumerate(items):
            if isinstance(item, dict) and item.get("id") == item_id:
                return index, item
        raise LedgerError(f"{label} {item_id} not found")

    def _add_value(self, collection: str, value: str, *, label: str) -> list[str]:
        with self._transaction() as session:
            values = session.collection(collection)
            if value in values:
                raise LedgerError(f"{label} {value!r} already exists")
            values.append(value)
        return list(values)

    @staticmethod
    def _rename_value(
        session: DocumentSession, collection: str, old: str, new: str, *, label: str
    ) -> None:
        values = session.collection(collection)
        if old not in values:
            raise LedgerError(f"{label} {old!r} does not exist")
        if new in values:
            raise LedgerError(f"{label} {new!r} already exists")
        session.document[collection] = [new if value == old else value for value in values]

    @staticmethod
    def _cascade(
        session: DocumentSession,
        collection: str,
        field_name: str,
        old_values: set[str],
        new: str,
    ) -> int:
        touched = 0
        records = session.collection(collection)
        for index, item in enumerate(records):
            if isinstance(item, dict) and item.get(field_name) in old_values:
                records[index] = {**item, field_name: new}
                touched += 1
        return touched

    @staticmethod
    def _purge_attendance(session: DocumentSession, names: set[str]) -> int:
        attendance = session.collection("attendance")
        kept = [
            item
            for item in attendance
            if not (isinstance(item, Mapping) and item.get("workerName") in names)
        ]
        session.document["attendance"] = kept
        return len(attendance) - len(kept)


__all__ = ["LedgerService", "TAXONOMY_FIELDS", "is_valid_duration"]
