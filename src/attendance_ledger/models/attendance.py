from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from attendance_ledger.utils.dates import percentage


@dataclass(frozen=True, slots=True)
class ClassInstance:
    date: str
    slot_id: str
    course_code: str
    course_name: str
    time: str
    attended: bool = False
    marked: bool = False
    room: Optional[str] = None

    def marked_as(self, attended: bool) -> "ClassInstance":
        return replace(self, marked=True, attended=bool(attended))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "date": self.date,
            "slotId": self.slot_id,
            "courseCode": self.course_code,
            "courseName": self.course_name,
            "attended": self.attended,
            "marked": self.marked,
            "time": self.time,
        }
        if self.room is not None:
            payload["room"] = self.room
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ClassInstance":
        return cls(
            date=payload["date"],
            slot_id=payload["slotId"],
            course_code=payload.get("courseCode", ""),
            course_name=payload.get("courseName", ""),
            time=payload.get("time", ""),
            attended=bool(payload.get("attended", False)),
            marked=bool(payload.get("marked", False)),
            room=payload.get("room"),
        )


@dataclass(frozen=True, slots=True)
class AttendanceRecord:
    """Attendance state for one calendar date.

    Only ``classes`` is stored; every aggregate is derived from it on access so the
    counts and the rate can never disagree with the instances they describe.
    """

    date: str
    classes: tuple[ClassInstance, ...]

    @property
    def total_classes(self) -> int:
        return len(self.classes)

    @property
    def marked_classes(self) -> int:
        return sum(1 for item in self.classes if item.marked)

    @property
    def attended_classes(self) -> int:
        return sum(1 for item in self.classes if item.marked and item.attended)

    @property
    def attendance_rate(self) -> int:
        # Unmarked classes are left out, a day with nothing marked reads as 0.
        return percentage(self.attended_classes, self.marked_classes)

    @property
    def unmarked(self) -> list[ClassInstance]:
        return [item for item in self.classes if not item.marked]

    def find_class(self, slot_id: str) -> ClassInstance | None:
        return next((item for item in self.classes if item.slot_id == slot_id), None)

    def with_mark(self, slot_id: str, attended: bool) -> "AttendanceRecord":
        classes = list(self.classes)
        for index, item in enumerate(classes):
            if item.slot_id == slot_id:
                classes[index] = item.marked_as(attended)
                break
        return replace(self, classes=tuple(classes))

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "classes": [item.to_dict() for item in self.classes],
            "totalClasses": self.total_classes,
            "attendedClasses": self.attended_classes,
            "attendanceRate": self.attendance_rate,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AttendanceRecord":
        # Stored aggregates are ignored and recomputed from the classes.
        return cls(
            date=payload["date"],
            classes=tuple(ClassInstance.from_dict(item) for item in payload["classes"]),
        )


@dataclass(frozen=True, slots=True)
class MarkEvent:
    """Emitted after a class instance has been marked present or absent."""

    date: str
    slot_id: str
    attended: bool
    record: AttendanceRecord
