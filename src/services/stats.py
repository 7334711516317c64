"""Expense statistics over the payment history."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Iterable, Literal, Mapping

from schemas.records import EXPENSE_TYPE, Payment, parse_timestamp

logger = logging.getLogger(__name__)

Period = Literal["day", "month", "year"]
PERIODS: tuple[Period, ...] = ("day", "month", "year")


@dataclass(frozen=True)
class ExpenseSummary:
    period: Period
    start: datetime
    end: datetime
    total: float = 0.0
    by_category: dict[str, float] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "period": self.period,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "total": self.total,
            "by_category": dict(self.by_category),
        }


def period_bounds(period: Period, now: datetime) -> tuple[datetime, datetime]:
    """Return the `[start, end)` window of `period` containing `now`."""
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "day":
        return day_start, day_start + timedelta(days=1)
    if period == "month":
        start = day_start.replace(day=1)
        if start.month == 12:
            return start, start.replace(year=start.year + 1, month=1)
        return start, start.replace(month=start.month + 1)
    if period == "year":
        start = day_start.replace(month=1, day=1)
        return start, start.replace(year=start.year + 1)
    raise ValueError(f"Unknown period: {period}")


def _fields(payment: Payment | Mapping[str, Any]) -> tuple[Any, Any, Any, Any]:
    if isinstance(payment, Payment):
        return payment.type, payment.category, payment.amount, payment.date
    return (
        payment.get("type"),
        payment.get("category"),
        payment.get("amount"),
        payment.get("date"),
    )


def expense_summary(
    payments: Iterable[Payment | Mapping[str, Any]],
    period: Period = "month",
    *,
    now: datetime | None = None,
    expense_type: str = EXPENSE_TYPE,
) -> ExpenseSummary:
    """Total expenses inside the current period, overall and per category."""
    now = now or datetime.now().astimezone()
    if now.tzinfo is None:
        now = now.astimezone()
    start, end = period_bounds(period, now)

    total = 0.0
    by_category: dict[str, float] = {}
    for payment in payments:
        kind, category, amount, date = _fields(payment)
        if kind != expense_type or not isinstance(date, str):
            continue
        try:
            moment = parse_timestamp(date)
            value = float(amount)
        except (TypeError, ValueError):
            logger.debug("Skipping payment with unreadable date or amount: %r", date)
            continue
        if not math.isfinite(value) or not (start <= moment < end):
            continue
        total += value
        key = category if isinstance(category, str) else ""
        by_category[key] = by_category.get(key, 0.0) + value

    return ExpenseSummary(period=period, start=start, end=end, total=total, by_category=by_category)


__all__ = ["ExpenseSummary", "PERIODS", "Period", "expense_summary", "period_bounds"]
