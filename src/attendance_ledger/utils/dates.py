from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterator

# Sunday-first, matching the planner's schedule templates (0 = Sunday).
WEEKDAY_OPTIONS: tuple[tuple[str, int], ...] = (
    ("Sunday", 0),
    ("Monday", 1),
    ("Tuesday", 2),
    ("Wednesday", 3),
    ("Thursday", 4),
    ("Friday", 5),
    ("Saturday", 6),
)

MONTH_ABBREVIATIONS: tuple[str, ...] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


class InvalidDateError(ValueError):
    pass


def coerce_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        candidate = value.strip()
        try:
            return date.fromisoformat(candidate[:10])
        except ValueError as exc:
            raise InvalidDateError(f"Expected an ISO date (YYYY-MM-DD), got {value!r}.") from exc

    raise InvalidDateError(f"Unsupported date value: {value!r}")


def to_iso(value: date | datetime | str) -> str:
    return coerce_date(value).isoformat()


def day_of_week(value: date | datetime | str) -> int:
    """Return the weekday with Sunday as 0 and Saturday as 6."""

    return (coerce_date(value).weekday() + 1) % 7


def weekday_label(index: int) -> str:
    for label, value in WEEKDAY_OPTIONS:
        if value == index:
            return label
    return f"Day {index}"


def iter_dates(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def shift_months(value: date, months: int) -> date:
    """First day of the month ``months`` away from ``value`` (negative goes back)."""

    month_index = value.year * 12 + (value.month - 1) + months
    return date(month_index // 12, month_index % 12 + 1, 1)


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percentage(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return round_half_up(100 * part / whole)
