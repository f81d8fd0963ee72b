from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Sequence

PACKAGE_DIR = Path(__file__).resolve().parent
SRC_DIR = PACKAGE_DIR.parent
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from attendance_ledger.config import Settings, refresh_settings
from attendance_ledger.data import CorruptedLedgerError, JsonKeyValueStore, LedgerStore
from attendance_ledger.models import Schedule
from attendance_ledger.services import AttendanceLedger, metrics
from attendance_ledger.utils import InvalidDateError, coerce_date

logger = logging.getLogger("attendance_ledger")


class ScheduleFileError(RuntimeError):
    """Raised when the schedule file exists but cannot be read."""


def load_schedule(path: Path) -> Schedule:
    if not path.exists():
        logger.info("No schedule file at %s", path)
        return Schedule()

    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        return Schedule.from_dict(payload)
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
        raise ScheduleFileError(f"Could not read schedule {path}: {exc}") from exc


def open_ledger(current: Settings) -> AttendanceLedger:
    store = LedgerStore(JsonKeyValueStore(current.store_path))
    return AttendanceLedger.from_store(store)


def _target_date(value: str | None) -> date:
    return coerce_date(value) if value else date.today()


def _cmd_backfill(args: argparse.Namespace, current: Settings) -> int:
    day = _target_date(args.date)
    term = load_schedule(current.schedule_path).term_for_date(day)
    if term is None:
        print("No term found in the schedule.")
        return 0

    ledger = open_ledger(current)
    inserted = ledger.ensure_records_for_term(term)
    print(f"Created {inserted} records for {term.name or term.id} ({len(ledger)} total).")
    return 0


def _cmd_mark(args: argparse.Namespace, current: Settings) -> int:
    day = coerce_date(args.date)
    ledger = open_ledger(current)
    term = load_schedule(current.schedule_path).term_for_date(day)
    ledger.ensure_record_for_date(term, day)

    record = ledger.mark(day, args.slot_id, args.attended)
    if record is None:
        print(f"No class {args.slot_id} on {day.isoformat()}.")
        return 0

    print(
        f"{day.isoformat()}: {record.attended_classes}/{record.total_classes} attended, "
        f"rate {record.attendance_rate}%"
    )
    return 0


def _cmd_pending(args: argparse.Namespace, current: Settings) -> int:
    day = _target_date(args.date)
    pending = open_ledger(current).pending_for_date(day)
    if not pending:
        print(f"Nothing pending on {day.isoformat()}.")
        return 0

    for item in pending:
        room = f" ({item.room})" if item.room else ""
        print(f"{item.time}  {item.slot_id}  {item.course_name}{room}")
    return 0


def _cmd_stats(args: argparse.Namespace, current: Settings) -> int:
    summary = metrics.summarize(open_ledger(current).records, _target_date(args.date))
    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
        return 0

    print(f"Weekly:      {summary.weekly_rate}%")
    print(f"Monthly:     {summary.monthly_rate}%")
    print(f"Semester:    {summary.semester_rate}%")
    print(f"Streak:      {summary.streak} days")
    print(f"Perfect:     {summary.perfect_days} / {summary.total_days} days")
    return 0


def _cmd_grid(args: argparse.Namespace, current: Settings) -> int:
    day = _target_date(args.date)
    weeks = metrics.contribution_grid(open_ledger(current).records, day)
    payload = {
        "weeks": [[cell.to_dict() for cell in week] for week in weeks],
        "monthLabels": [
            {"label": label.label, "weekIndex": label.week_index}
            for label in metrics.month_labels(len(weeks), day)
        ],
    }
    print(json.dumps(payload))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="attendance-ledger", description="Class attendance ledger.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    backfill = subparsers.add_parser("backfill", help="Create records for every class day of the current term")
    backfill.add_argument("--date", help="Resolve the term active on this date (default: today)")
    backfill.set_defaults(handler=_cmd_backfill)

    mark = subparsers.add_parser("mark", help="Mark one class as attended or absent")
    mark.add_argument("date")
    mark.add_argument("slot_id")
    choice = mark.add_mutually_exclusive_group(required=True)
    choice.add_argument("--attended", dest="attended", action="store_true")
    choice.add_argument("--absent", dest="attended", action="store_false")
    mark.set_defaults(handler=_cmd_mark)

    pending = subparsers.add_parser("pending", help="List unmarked classes")
    pending.add_argument("--date")
    pending.set_defaults(handler=_cmd_pending)

    stats = subparsers.add_parser("stats", help="Show attendance rates and streak")
    stats.add_argument("--date")
    stats.add_argument("--json", action="store_true")
    stats.set_defaults(handler=_cmd_stats)

    grid = subparsers.add_parser("grid", help="Dump the 365-day contribution grid as JSON")
    grid.add_argument("--date")
    grid.set_defaults(handler=_cmd_grid)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    current = refresh_settings()
    logging.basicConfig(level=current.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        return args.handler(args, current)
    except (CorruptedLedgerError, InvalidDateError, ScheduleFileError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
