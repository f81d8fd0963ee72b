from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping, Optional

from attendance_ledger.utils.dates import coerce_date, weekday_label


@dataclass(frozen=True, slots=True)
class ClassSlot:
    id: str
    day_of_week: int
    course_code: str = ""
    title: str = ""
    start_time: str = ""
    end_time: Optional[str] = None
    room: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.title or self.course_code or "Class"

    def weekday_label(self) -> str:
        return weekday_label(self.day_of_week)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ClassSlot":
        # The planner stores slots as day/start/end.
        day_raw = payload["dayOfWeek"] if "dayOfWeek" in payload else payload["day"]
        return cls(
            id=str(payload["id"]),
            day_of_week=int(day_raw),
            course_code=payload.get("courseCode") or "",
            title=payload.get("title") or "",
            start_time=payload.get("startTime") or payload.get("start") or "",
            end_time=payload.get("endTime") or payload.get("end"),
            room=payload.get("room"),
        )


@dataclass(frozen=True, slots=True)
class Term:
    id: str
    name: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    slots: tuple[ClassSlot, ...] = ()

    @property
    def has_range(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    def contains(self, day: date) -> bool:
        if not self.has_range:
            return False
        return self.start_date <= day <= self.end_date

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Term":
        start_raw = payload.get("startDate")
        end_raw = payload.get("endDate")
        return cls(
            id=str(payload["id"]),
            name=payload.get("name") or "",
            start_date=coerce_date(start_raw) if start_raw else None,
            end_date=coerce_date(end_raw) if end_raw else None,
            slots=tuple(ClassSlot.from_dict(slot) for slot in payload.get("slots", [])),
        )


@dataclass(frozen=True, slots=True)
class AcademicYear:
    id: str
    label: str = ""
    terms: tuple[Term, ...] = ()

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AcademicYear":
        return cls(
            id=str(payload["id"]),
            label=payload.get("label") or "",
            terms=tuple(Term.from_dict(term) for term in payload.get("terms", [])),
        )


@dataclass(frozen=True, slots=True)
class Schedule:
    """Read-only view of the planner's weekly templates."""

    years: tuple[AcademicYear, ...] = field(default_factory=tuple)
    selected_year_id: Optional[str] = None

    def active_term_for_date(self, day: date | str) -> Term | None:
        target = coerce_date(day)
        for year in self.years:
            for term in year.terms:
                if term.contains(target):
                    return term
        return None

    def term_for_date(self, day: date | str) -> Term | None:
        """Active term for ``day``, else the first term of the selected (or first) year."""

        active = self.active_term_for_date(day)
        if active is not None:
            return active

        fallback_year = next(
            (year for year in self.years if year.id == self.selected_year_id),
            self.years[0] if self.years else None,
        )
        if fallback_year is None or not fallback_year.terms:
            return None
        return fallback_year.terms[0]

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Schedule":
        return cls(
            years=tuple(AcademicYear.from_dict(year) for year in payload.get("years", [])),
            selected_year_id=payload.get("selectedYearId"),
        )
