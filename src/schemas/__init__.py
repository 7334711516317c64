"""Schema package for stored ledger records."""

from .records import (
    AttendanceRecord,
    Meta,
    Payment,
    PaymentDraft,
    default_document,
    normalize_document,
    normalize_payment,
)

__all__ = [
    "AttendanceRecord",
    "Meta",
    "Payment",
    "PaymentDraft",
    "default_document",
    "normalize_document",
    "normalize_payment",
]
