import json
from datetime import date

import pytest

from attendance_ledger.data import CorruptedLedgerError, JsonKeyValueStore, LedgerStore
from attendance_ledger.models import AttendanceRecord, ClassInstance, ClassSlot, Term
from attendance_ledger.services import AttendanceLedger


def make_term() -> Term:
    return Term(
        id="term-1",
        name="Autumn",
        start_date=date(2025, 9, 1),
        end_date=date(2025, 9, 7),
        slots=(
            ClassSlot(id="s1", day_of_week=1, course_code="CS101", title="Programming", start_time="09:00"),
            ClassSlot(id="s2", day_of_week=1, course_code="CS102", title="Algorithms", start_time="11:00"),
            ClassSlot(id="s3", day_of_week=1, course_code="CS103", title="Databases", start_time="14:00"),
        ),
    )


def make_ledger(**kwargs) -> AttendanceLedger:
    ledger = AttendanceLedger(**kwargs)
    ledger.ensure_records_for_term(make_term())
    return ledger


def test_ensure_records_for_term_skips_term_without_dates():
    ledger = AttendanceLedger()
    term = Term(id="t", slots=make_term().slots)

    assert ledger.ensure_records_for_term(term) == 0
    assert ledger.ensure_records_for_term(None) == 0
    assert len(ledger) == 0


def test_mark_recomputes_aggregates_over_marked_classes():
    ledger = make_ledger()

    ledger.mark("2025-09-01", "s1", True)
    record = ledger.mark("2025-09-01", "s2", False)

    assert record.total_classes == 3
    assert record.attended_classes == 1
    assert record.attendance_rate == 50
    assert ledger.get_record("2025-09-01") == record


def test_unmarked_record_reads_as_zero_percent():
    record = make_ledger().get_record(date(2025, 9, 1))

    assert record.attendance_rate == 0
    assert record.attended_classes == 0


def test_mark_then_unmark_leaves_class_marked_absent():
    ledger = make_ledger()

    ledger.mark("2025-09-01", "s1", True)
    record = ledger.mark("2025-09-01", "s1", False)

    flipped = record.find_class("s1")
    assert flipped.marked is True
    assert flipped.attended is False
    assert record.marked_classes == 1
    assert record.attended_classes == 0
    assert record.attendance_rate == 0
    assert [item.marked for item in record.classes] == [True, False, False]


def test_mark_missing_record_or_slot_is_a_no_op():
    events = []
    ledger = make_ledger(listeners=[events.append])
    before = ledger.records

    assert ledger.mark("2025-09-02", "s1", True) is None
    assert ledger.mark("2025-09-01", "unknown", True) is None
    assert ledger.records == before
    assert events == []


def test_mark_emits_event_to_subscribers():
    events = []
    ledger = make_ledger()
    ledger.subscribe(events.append)

    ledger.mark("2025-09-01", "s2", True)
    ledger.unsubscribe(events.append)
    ledger.mark("2025-09-01", "s3", True)

    assert len(events) == 1
    assert events[0].date == "2025-09-01"
    assert events[0].slot_id == "s2"
    assert events[0].attended is True
    assert events[0].record.attended_classes == 1


def test_get_record_does_not_materialize():
    ledger = AttendanceLedger()

    assert ledger.get_record("2025-09-01") is None
    assert len(ledger) == 0


def test_ensure_record_for_date_materializes_single_day():
    ledger = AttendanceLedger()
    term = make_term()

    record = ledger.ensure_record_for_date(term, "2025-09-08")

    assert record is not None
    assert record.total_classes == 3
    assert ledger.ensure_record_for_date(term, "2025-09-09") is None
    assert ledger.ensure_record_for_date(None, "2025-09-15") is None
    assert [item.date for item in ledger.records] == ["2025-09-08"]


def test_has_unmarked_and_pending():
    ledger = make_ledger()

    assert ledger.has_unmarked("2025-09-01") is True
    assert ledger.has_unmarked("2025-09-02") is False

    for slot_id in ("s1", "s2"):
        ledger.mark("2025-09-01", slot_id, True)

    pending = ledger.pending_for_today(today=date(2025, 9, 1))
    assert [item.slot_id for item in pending] == ["s3"]
    assert ledger.pending_for_today(today=date(2025, 9, 2)) == []

    ledger.mark("2025-09-01", "s3", False)
    assert ledger.has_unmarked("2025-09-01") is False


def test_insert_records_never_replaces_existing_date():
    ledger = make_ledger()
    replacement = AttendanceRecord(
        date="2025-09-01",
        classes=(ClassInstance(date="2025-09-01", slot_id="x", course_code="", course_name="Class", time=""),),
    )

    assert ledger.insert_records([replacement]) == 0
    assert ledger.get_record("2025-09-01").find_class("x") is None
    assert ledger.insert_records([AttendanceRecord(date="2025-09-02", classes=())]) == 0


def test_state_survives_restart(tmp_path):
    path = tmp_path / "ledger.json"
    ledger = AttendanceLedger.from_store(LedgerStore(JsonKeyValueStore(path)))
    ledger.ensure_records_for_term(make_term())
    ledger.mark("2025-09-01", "s1", True)

    reopened = AttendanceLedger.from_store(LedgerStore(JsonKeyValueStore(path)))

    assert reopened.records == ledger.records
    snapshot = json.loads(path.read_text(encoding="utf-8"))["attendance"]
    assert snapshot["version"] == 1
    stored = snapshot["records"][0]
    assert stored["date"] == "2025-09-01"
    assert stored["totalClasses"] == 3
    assert stored["attendedClasses"] == 1
    assert stored["attendanceRate"] == 100
    assert stored["classes"][0]["slotId"] == "s1"
    assert stored["classes"][0]["marked"] is True


def test_loaded_aggregates_are_recomputed_from_classes(tmp_path):
    path = tmp_path / "ledger.json"
    path.write_text(
        json.dumps(
            {
                "attendance": {
                    "version": 1,
                    "records": [
                        {
                            "date": "2025-09-01",
                            "classes": [
                                {
                                    "date": "2025-09-01",
                                    "slotId": "s1",
                                    "courseCode": "CS101",
                                    "courseName": "Programming",
                                    "attended": True,
                                    "marked": True,
                                    "time": "09:00",
                                }
                            ],
                            "totalClasses": 5,
                            "attendedClasses": 0,
                            "attendanceRate": 12,
                        }
                    ],
                }
            }
        ),
        encoding="utf-8",
    )

    record = AttendanceLedger.from_store(LedgerStore(JsonKeyValueStore(path))).get_record("2025-09-01")

    assert record.total_classes == 1
    assert record.attended_classes == 1
    assert record.attendance_rate == 100


def test_unsupported_snapshot_version_is_reported(tmp_path):
    path = tmp_path / "ledger.json"
    path.write_text(json.dumps({"attendance": {"version": 7, "records": []}}), encoding="utf-8")

    with pytest.raises(CorruptedLedgerError):
        AttendanceLedger.from_store(LedgerStore(JsonKeyValueStore(path)))


def test_record_missing_fields_is_reported(tmp_path):
    path = tmp_path / "ledger.json"
    path.write_text(json.dumps({"attendance": {"version": 1, "records": [{"date": "2025-09-01"}]}}), encoding="utf-8")

    with pytest.raises(CorruptedLedgerError):
        LedgerStore(JsonKeyValueStore(path)).load()


class FailingStore:
    def __init__(self) -> None:
        self.saved = []
        self.fail = False

    def load(self):
        return []

    def save(self, records) -> None:
        if self.fail:
            raise OSError("disk full")
        self.saved = list(records)


def test_failed_save_leaves_mark_unapplied():
    store = FailingStore()
    events = []
    ledger = AttendanceLedger(store=store, listeners=[events.append])
    ledger.ensure_records_for_term(make_term())
    store.fail = True

    with pytest.raises(OSError):
        ledger.mark("2025-09-01", "s1", True)

    record = ledger.get_record("2025-09-01")
    assert record.find_class("s1").marked is False
    assert record.attendance_rate == 0
    assert events == []
    assert store.saved[0].find_class("s1").marked is False


def test_failed_save_leaves_insert_unapplied():
    store = FailingStore()
    store.fail = True
    ledger = AttendanceLedger(store=store)

    with pytest.raises(OSError):
        ledger.ensure_records_for_term(make_term())

    assert len(ledger) == 0
    assert ledger.get_record("2025-09-01") is None
