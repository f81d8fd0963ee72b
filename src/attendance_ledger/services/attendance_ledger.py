from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable, Iterator

from attendance_ledger.data import LedgerStore
from attendance_ledger.models import AttendanceRecord, ClassInstance, MarkEvent, Term
from attendance_ledger.services.materializer import backfill_range, materialize
from attendance_ledger.utils.dates import to_iso

logger = logging.getLogger(__name__)

MarkListener = Callable[[MarkEvent], None]


class AttendanceLedger:
    """Owns the per-day attendance records and the only writes made to them.

    A missing term, record or slot is an ordinary state: lookups return ``None`` or an
    empty result and writes do nothing.
    """

    def __init__(
        self,
        records: Iterable[AttendanceRecord] = (),
        *,
        store: LedgerStore | None = None,
        listeners: Iterable[MarkListener] = (),
    ) -> None:
        self._records: dict[str, AttendanceRecord] = {}
        for record in records:
            self._records.setdefault(record.date, record)
        self._store = store
        self._listeners: list[MarkListener] = list(listeners)

    @classmethod
    def from_store(cls, store: LedgerStore, *, listeners: Iterable[MarkListener] = ()) -> "AttendanceLedger":
        return cls(store.load(), store=store, listeners=listeners)

    # ------------------------------------------------------------------
    # Read interface
    # ------------------------------------------------------------------
    @property
    def records(self) -> list[AttendanceRecord]:
        return [self._records[key] for key in sorted(self._records)]

    def __iter__(self) -> Iterator[AttendanceRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, day: object) -> bool:
        if not isinstance(day, (str, date)):
            return False
        return to_iso(day) in self._records

    def get_record(self, day: date | str) -> AttendanceRecord | None:
        return self._records.get(to_iso(day))

    def has_unmarked(self, day: date | str) -> bool:
        record = self.get_record(day)
        if record is None:
            return False
        return any(not item.marked for item in record.classes)

    def pending_for_date(self, day: date | str) -> list[ClassInstance]:
        record = self.get_record(day)
        if record is None:
            return []
        return record.unmarked

    def pending_for_today(self, today: date | None = None) -> list[ClassInstance]:
        return self.pending_for_date(today or date.today())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def insert_records(self, records: Iterable[AttendanceRecord]) -> int:
        """Add records for dates not yet present; existing dates are left untouched."""

        additions: dict[str, AttendanceRecord] = {}
        for record in records:
            if not record.classes or record.date in self._records or record.date in additions:
                continue
            additions[record.date] = record

        if additions:
            self._commit(additions)
        return len(additions)

    def ensure_records_for_term(self, term: Term | None) -> int:
        if term is None or not term.has_range:
            return 0
        inserted = backfill_range(term, self)
        if inserted:
            logger.info("Created %d attendance records for term %s", inserted, term.id)
        return inserted

    def ensure_record_for_date(self, term: Term | None, day: date | str) -> AttendanceRecord | None:
        existing = self.get_record(day)
        if existing is not None or term is None:
            return existing

        classes = materialize(term, day)
        if not classes:
            return None

        self.insert_records([AttendanceRecord(date=to_iso(day), classes=tuple(classes))])
        return self.get_record(day)

    def mark(self, day: date | str, slot_id: str, attended: bool) -> AttendanceRecord | None:
        iso_day = to_iso(day)
        record = self._records.get(iso_day)
        if record is None or record.find_class(slot_id) is None:
            logger.debug("Nothing to mark for %s on %s", slot_id, iso_day)
            return None

        updated = record.with_mark(slot_id, attended)
        self._commit({iso_day: updated})
        logger.debug(
            "Marked %s on %s as %s (rate %d%%)",
            slot_id,
            iso_day,
            "attended" if attended else "absent",
            updated.attendance_rate,
        )

        self._emit(MarkEvent(date=iso_day, slot_id=slot_id, attended=bool(attended), record=updated))
        return updated

    # ------------------------------------------------------------------
    # Mark events
    # ------------------------------------------------------------------
    def subscribe(self, listener: MarkListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: MarkListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _emit(self, event: MarkEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def _commit(self, changes: dict[str, AttendanceRecord]) -> None:
        # The snapshot is saved before the swap, a failed write leaves the ledger unchanged.
        candidate = {**self._records, **changes}
        if self._store is not None:
            self._store.save([candidate[key] for key in sorted(candidate)])
        self._records = candidate
