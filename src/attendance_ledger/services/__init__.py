from .attendance_ledger import AttendanceLedger, MarkListener
from .materializer import backfill_range, iter_term_dates, materialize
from . import metrics

__all__ = [
    "AttendanceLedger",
    "MarkListener",
    "backfill_range",
    "iter_term_dates",
    "materialize",
    "metrics",
]
