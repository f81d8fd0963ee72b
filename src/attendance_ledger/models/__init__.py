from .attendance import AttendanceRecord, ClassInstance, MarkEvent
from .schedule import AcademicYear, ClassSlot, Schedule, Term

__all__ = [
    "AcademicYear",
    "AttendanceRecord",
    "ClassInstance",
    "ClassSlot",
    "MarkEvent",
    "Schedule",
    "Term",
]
