"""Stored record contracts for the ledger document."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Iterable, Mapping, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    field_validator,
)

SCHEMA_VERSION = 1

ID_COLLECTIONS = ("payments", "attendance")
VALUE_COLLECTIONS = ("payment_types", "payment_categories", "workers")
COLLECTIONS = ("payment_types", "payment_categories", "payments", "workers", "attendance")

EXPENSE_TYPE = "Expense"

DURATION_OPTIONS = (
    "Full Day (8h)",
    "Half Day (4h)",
    "Overtime (+1h)",
    "Overtime (+2h)",
    "Overtime (+3h)",
)


def now_iso() -> str:
    """Return the current UTC time in the `2024-01-01T00:00:00.000Z` form."""
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing `Z`."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Meta(BaseModel):
    version: int = SCHEMA_VERSION
    created_at: str = Field(default_factory=now_iso)

    model_config = ConfigDict(extra="allow")


class _PaymentFields(BaseModel):
    id: str
    amount: float
    type: str = ""
    category: str = ""
    date: str = ""

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    def _common(self) -> dict[str, Any]:
        payload = self.model_dump(include={"id", "amount", "type", "category", "date"})
        payload.update(self.model_extra or {})
        return payload


class Payment(_PaymentFields):
    """Canonical payment view: attachments are always lists."""

    images: list[str] = Field(default_factory=list)
    audio_uris: list[str] = Field(default_factory=list, alias="audioUris")

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    @property
    def attachments(self) -> list[str]:
        return [*self.images, *self.audio_uris]


class ArrayMediaPayment(_PaymentFields):
    """Current stored shape with `images`/`audioUris` lists."""

    images: list[str | None] = Field(default_factory=list)
    audio_uris: list[str | None] = Field(default_factory=list, alias="audioUris")

    @field_validator("images", "audio_uris", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def normalized(self) -> Payment:
        payload = self._common()
        payload["images"] = [item for item in self.images if item]
        payload["audioUris"] = [item for item in self.audio_uris if item]
        return Payment.model_validate(payload)


class LegacyMediaPayment(_PaymentFields):
    """Pre-array stored shape with a single `image`/`audioUri`."""

    image: str | None = None
    audio_uri: str | None = Field(default=None, alias="audioUri")

    def normalized(self) -> Payment:
        payload = self._common()
        payload["images"] = [self.image] if self.image else []
        payload["audioUris"] = [self.audio_uri] if self.audio_uri else []
        return Payment.model_validate(payload)


def _media_shape(value: Any) -> str:
    if isinstance(value, Mapping):
        return "array" if "images" in value or "audioUris" in value else "legacy"
    if isinstance(value, LegacyMediaPayment):
        return "legacy"
    return "array"


StoredPayment = Annotated[
    Union[
        Annotated[ArrayMediaPayment, Tag("array")],
        Annotated[LegacyMediaPayment, Tag("legacy")],
    ],
    Discriminator(_media_shape),
]

_STORED_PAYMENT = TypeAdapter(StoredPayment)


def normalize_payment(raw: Mapping[str, Any]) -> Payment:
    """Read a stored payment of either media shape into the canonical view."""
    return _STORED_PAYMENT.validate_python(dict(raw)).normalized()


class PaymentDraft(BaseModel):
    """Validated caller input for a new or edited payment."""

    amount: float = Field(gt=0, allow_inf_nan=False)
    type: str
    category: str
    date: str = Field(default_factory=now_iso)
    images: list[str] = Field(default_factory=list)
    audio_uris: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    @field_validator("type", "category")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("date")
    @classmethod
    def _iso_date(cls, value: str) -> str:
        parse_timestamp(value)
        return value


class AttendanceRecord(BaseModel):
    id: str
    worker_name: str = Field(alias="workerName")
    duration: str
    date: str

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    @property
    def day(self) -> str:
        return self.date.split("T", 1)[0]

    @property
    def is_full_day(self) -> bool:
        return "Full" in self.duration


def unique_strings(values: Iterable[Any]) -> list[str]:
    """Order-preserving, case-sensitive de-duplication of string values."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if not isinstance(value, str) or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def default_document(
    *,
    payment_types: Iterable[str],
    payment_categories: Iterable[str],
) -> dict[str, Any]:
    return {
        "meta": Meta().model_dump(),
        "payment_types": unique_strings(payment_types),
        "payment_categories": unique_strings(payment_categories),
        "payments": [],
        "workers": [],
        "attendance": [],
    }


def normalize_document(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Upgrade older document generations to the current collection shapes.

    A `payment_types` object grouped as `{"expenses": [...], "incomes": [...]}`
    is flattened into one de-duplicated list, and a `worker_logs` collection
    is folded into `attendance`. Absent collections stay absent.
    """
    document = dict(raw)

    payment_types = document.get("payment_types")
    if isinstance(payment_types, Mapping):
        grouped: list[Any] = []
        for group in payment_types.values():
            if isinstance(group, list):
                grouped.extend(group)
        document["payment_types"] = unique_strings(grouped)

    if "worker_logs" in document:
        legacy_logs = document.pop("worker_logs")
        attendance = list(document.get("attendance") or [])
        if isinstance(legacy_logs, list):
            known = {item.get("id") for item in attendance if isinstance(item, Mapping)}
            for item in legacy_logs:
                if isinstance(item, Mapping) and item.get("id") not in known:
                    attendance.append(dict(item))
                    known.add(item.get("id"))
        document["attendance"] = attendance

    return document


def has_minimum_shape(document: Any) -> bool:
    """True when a parsed document carries the taxonomy and payment collections."""
    if not isinstance(document, Mapping):
        return False
    payment_types = document.get("payment_types")
    payments = document.get("payments")
    if not isinstance(payment_types, (list, Mapping)):
        return False
    return isinstance(payments, list)


__all__ = [
    "COLLECTIONS",
    "DURATION_OPTIONS",
    "EXPENSE_TYPE",
    "ID_COLLECTIONS",
    "SCHEMA_VERSION",
    "VALUE_COLLECTIONS",
    "ArrayMediaPayment",
    "AttendanceRecord",
    "LegacyMediaPayment",
    "Meta",
    "Payment",
    "PaymentDraft",
    "StoredPayment",
    "default_document",
    "has_minimum_shape",
    "normalize_document",
    "normalize_payment",
    "now_iso",
    "parse_timestamp",
    "unique_strings",
]
