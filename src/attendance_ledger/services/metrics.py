"""Read-side statistics over attendance records.

Every function here is recomputed from the records it is given; nothing is cached.
Functions that depend on the current date accept ``today`` so callers and tests can pin
the clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Mapping

from attendance_ledger.models import AttendanceRecord
from attendance_ledger.utils.dates import (
    MONTH_ABBREVIATIONS,
    coerce_date,
    day_of_week,
    percentage,
    shift_months,
)

WEEKLY_WINDOW_DAYS = 7
MONTHLY_WINDOW_DAYS = 30
SEMESTER_WINDOW_DAYS = 120

GRID_DAYS = 365
MONTHS_LABELLED = 12
MIN_LABEL_GAP = 4


class Intensity(str, Enum):
    NONE = "none"
    EXCELLENT = "excellent"
    GOOD = "good"
    MODERATE = "moderate"
    WEAK = "weak"
    POOR = "poor"


@dataclass(frozen=True, slots=True)
class DayCell:
    date: str
    attendance_rate: int = 0
    total_classes: int = 0

    @property
    def is_placeholder(self) -> bool:
        return not self.date

    @property
    def intensity(self) -> Intensity:
        return intensity(self.attendance_rate, self.total_classes)

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "attendanceRate": self.attendance_rate,
            "totalClasses": self.total_classes,
        }


PLACEHOLDER_CELL = DayCell(date="")


@dataclass(frozen=True, slots=True)
class MonthLabel:
    label: str
    week_index: int


@dataclass(frozen=True, slots=True)
class AttendanceSummary:
    weekly_rate: int
    monthly_rate: int
    semester_rate: int
    streak: int
    perfect_days: int
    total_days: int

    def to_dict(self) -> dict:
        return {
            "weeklyRate": self.weekly_rate,
            "monthlyRate": self.monthly_rate,
            "semesterRate": self.semester_rate,
            "streak": self.streak,
            "perfectDays": self.perfect_days,
            "totalDays": self.total_days,
        }


def _resolve_today(today: date | str | None) -> date:
    return coerce_date(today) if today is not None else date.today()


def rate_since(records: Iterable[AttendanceRecord], days: int, today: date | str | None = None) -> int:
    """Aggregate rate over records dated within the last ``days`` days, inclusive.

    Sums classes across days rather than averaging the daily rates.
    """

    end = _resolve_today(today)
    start = end - timedelta(days=days)
    window_start, window_end = start.isoformat(), end.isoformat()

    total = 0
    attended = 0
    for record in records:
        if record.total_classes > 0 and window_start <= record.date <= window_end:
            total += record.total_classes
            attended += record.attended_classes

    return percentage(attended, total)


def weekly_rate(records: Iterable[AttendanceRecord], today: date | str | None = None) -> int:
    return rate_since(records, WEEKLY_WINDOW_DAYS, today)


def monthly_rate(records: Iterable[AttendanceRecord], today: date | str | None = None) -> int:
    return rate_since(records, MONTHLY_WINDOW_DAYS, today)


def semester_rate(records: Iterable[AttendanceRecord], today: date | str | None = None) -> int:
    return rate_since(records, SEMESTER_WINDOW_DAYS, today)


def attendance_streak(records: Iterable[AttendanceRecord], as_of: date | str | None = None) -> int:
    """Consecutive fully attended class days, counted from the most recent record.

    Days without classes neither extend nor break the streak. Every record counts,
    including backfilled days still ahead whose unmarked classes read as 0%. Pass
    ``as_of`` to leave out records dated after that day.
    """

    cutoff = coerce_date(as_of).isoformat() if as_of is not None else None
    streak = 0
    for record in sorted(records, key=lambda item: item.date, reverse=True):
        if cutoff is not None and record.date > cutoff:
            continue
        if record.total_classes == 0:
            continue
        if record.attendance_rate < 100:
            break
        streak += 1
    return streak


def perfect_days(records: Iterable[AttendanceRecord]) -> int:
    return sum(1 for record in records if record.total_classes > 0 and record.attendance_rate == 100)


def total_days(records: Iterable[AttendanceRecord]) -> int:
    return sum(1 for record in records if record.total_classes > 0)


def last_365_days(records: Iterable[AttendanceRecord], today: date | str | None = None) -> list[DayCell]:
    end = _resolve_today(today)
    by_date: Mapping[str, AttendanceRecord] = {record.date: record for record in records}

    cells: list[DayCell] = []
    for offset in range(GRID_DAYS - 1, -1, -1):
        iso_day = (end - timedelta(days=offset)).isoformat()
        record = by_date.get(iso_day)
        if record is None:
            cells.append(DayCell(date=iso_day))
        else:
            cells.append(
                DayCell(
                    date=iso_day,
                    attendance_rate=record.attendance_rate,
                    total_classes=record.total_classes,
                )
            )
    return cells


def group_into_weeks(cells: list[DayCell]) -> list[list[DayCell]]:
    """Bucket consecutive days into Sunday-first weeks of exactly seven cells."""

    if not cells:
        return []

    leading = day_of_week(cells[0].date)
    padded = [PLACEHOLDER_CELL] * leading + list(cells)
    trailing = -len(padded) % 7
    padded.extend([PLACEHOLDER_CELL] * trailing)

    return [padded[index:index + 7] for index in range(0, len(padded), 7)]


def contribution_grid(records: Iterable[AttendanceRecord], today: date | str | None = None) -> list[list[DayCell]]:
    return group_into_weeks(last_365_days(records, today))


def month_labels(weeks_count: int, today: date | str | None = None) -> list[MonthLabel]:
    """Place a label on the week holding the first of each of the trailing 12 months.

    A label is dropped when an earlier placed one sits fewer than four weeks away.
    """

    end = _resolve_today(today)
    labels: list[MonthLabel] = []

    for months_back in range(MONTHS_LABELLED - 1, -1, -1):
        month_start = shift_months(end, -months_back)
        weeks_from_end = (end - month_start).days // 7
        week_index = max(0, weeks_count - weeks_from_end - 1)

        if any(abs(existing.week_index - week_index) < MIN_LABEL_GAP for existing in labels):
            continue
        labels.append(MonthLabel(label=MONTH_ABBREVIATIONS[month_start.month - 1], week_index=week_index))

    return labels


def intensity(rate: int, total_classes: int) -> Intensity:
    if total_classes == 0:
        return Intensity.NONE
    if rate >= 95:
        return Intensity.EXCELLENT
    if rate >= 80:
        return Intensity.GOOD
    if rate >= 60:
        return Intensity.MODERATE
    if rate >= 40:
        return Intensity.WEAK
    return Intensity.POOR


def summarize(records: Iterable[AttendanceRecord], today: date | str | None = None) -> AttendanceSummary:
    items = list(records)
    reference = _resolve_today(today)
    return AttendanceSummary(
        weekly_rate=weekly_rate(items, reference),
        monthly_rate=monthly_rate(items, reference),
        semester_rate=semester_rate(items, reference),
        streak=attendance_streak(items),
        perfect_days=perfect_days(items),
        total_days=total_days(items),
    )
