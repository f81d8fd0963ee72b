from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Callable, Iterator

from attendance_ledger.models import AttendanceRecord, ClassInstance, Term
from attendance_ledger.utils.dates import coerce_date, day_of_week, iter_dates

if TYPE_CHECKING:
    from attendance_ledger.services.attendance_ledger import AttendanceLedger

logger = logging.getLogger(__name__)


def materialize(term: Term, day: date | str) -> list[ClassInstance]:
    """Class instances the term's weekly slots produce on ``day``.

    The term's date range is not consulted here, callers decide whether ``day`` is in
    scope. An empty list means there is no class that day.
    """

    target = coerce_date(day)
    iso_day = target.isoformat()
    weekday = day_of_week(target)

    return [
        ClassInstance(
            date=iso_day,
            slot_id=slot.id,
            course_code=slot.course_code or "",
            course_name=slot.display_name,
            time=slot.start_time,
            attended=False,
            marked=False,
            room=slot.room,
        )
        for slot in term.slots
        if slot.day_of_week == weekday
    ]


def iter_term_dates(term: Term) -> Iterator[date]:
    if not term.has_range:
        return iter(())
    return iter_dates(term.start_date, term.end_date)


def plan_backfill(term: Term, has_record: Callable[[str], bool]) -> list[AttendanceRecord]:
    planned: list[AttendanceRecord] = []
    for day in iter_term_dates(term):
        iso_day = day.isoformat()
        if has_record(iso_day):
            continue
        classes = materialize(term, day)
        if classes:
            planned.append(AttendanceRecord(date=iso_day, classes=tuple(classes)))
    return planned


def backfill_range(term: Term, ledger: "AttendanceLedger") -> int:
    """Insert a record for every class day of ``term`` the ledger does not know yet."""

    planned = plan_backfill(term, ledger.__contains__)
    inserted = ledger.insert_records(planned)
    logger.debug("Backfilled %d records for term %s", inserted, term.id)
    return inserted
