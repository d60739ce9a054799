"""Pydantic models for semesters, timetables, class instances and risk results.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Records handed back by the engine are frozen; updates are made with model_copy().
"""

import re
import uuid
from datetime import date, datetime, time
from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from bunkplan.config import get_config


class DayOfWeek(str, Enum):
    MON = "MON"
    TUE = "TUE"
    WED = "WED"
    THU = "THU"
    FRI = "FRI"
    SAT = "SAT"
    SUN = "SUN"

    @classmethod
    def from_date(cls, day: date) -> "DayOfWeek":
        """Map a calendar date to its weekday (date.weekday() is 0 for Monday)."""
        return _WEEKDAYS[day.weekday()]

    @property
    def is_weekend(self) -> bool:
        return self in (DayOfWeek.SAT, DayOfWeek.SUN)


_WEEKDAYS = list(DayOfWeek)


class BlockType(str, Enum):
    THEORY = "THEORY"
    LAB = "LAB"


class AttendanceStatus(str, Enum):
    """Tri-state attendance. EXCUSED counts as attended, never as absent."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    EXCUSED = "EXCUSED"

    @property
    def is_attended(self) -> bool:
        return self is not AttendanceStatus.ABSENT


class RiskLevel(str, Enum):
    GOOD = "GOOD"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class EmptyReason(str, Enum):
    NONE = "NONE"
    HOLIDAY = "HOLIDAY"
    EXAM = "EXAM"
    WEEKEND = "WEEKEND"
    NO_CLASSES = "NO_CLASSES"


class BlackoutBlock(BaseModel):
    """An inclusive range of calendar days on which no classes are generated."""

    model_config = ConfigDict(frozen=True)

    DEFAULT_NAME: ClassVar[str] = "Blackout"

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    start_date: date
    end_date: date
    name: str | None = None  # "Diwali", "Mid-Sem"

    @property
    def display_name(self) -> str:
        return self.name or self.DEFAULT_NAME


class Holiday(BlackoutBlock):
    DEFAULT_NAME: ClassVar[str] = "Holiday"


class ExamBlock(BlackoutBlock):
    DEFAULT_NAME: ClassVar[str] = "Exam Period"


class Semester(BaseModel):
    """Semester span, attendance threshold and its blackout blocks.

    Date ordering is checked by the generator (see generator.validate_semester)
    so that an invalid semester is rejected before any generation runs.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: str | None = None
    start_date: date
    end_date: date
    # Defaults to BUNKPLAN_MIN_ATTENDANCE_PERCENT (75.0)
    min_attendance_percent: float = Field(
        default_factory=lambda: get_config().min_attendance_percent
    )
    holidays: list[Holiday] = Field(default_factory=list)
    exam_blocks: list[ExamBlock] = Field(default_factory=list)

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


_SLOT_LABEL = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*-\s*(\d{1,2}):(\d{2})\s*$")


class TimeSlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: time
    end: time

    @classmethod
    def from_label(cls, label: str) -> "TimeSlot":
        """Parse an "HH:MM-HH:MM" slot label, e.g. "08:00-08:50".

        Raises:
            ValueError: If the label does not match the format.
        """
        match = _SLOT_LABEL.match(label)
        if match is None:
            raise ValueError(f"Invalid time slot label {label!r}, expected HH:MM-HH:MM")
        start_h, start_m, end_h, end_m = (int(g) for g in match.groups())
        return cls(start=time(start_h, start_m), end=time(end_h, end_m))

    @property
    def label(self) -> str:
        return f"{self.start:%H:%M}-{self.end:%H:%M}"


class WeeklyTemplateEntry(BaseModel):
    """One recurring block of the weekly timetable."""

    model_config = ConfigDict(frozen=True)

    day_of_week: DayOfWeek
    time_slot: TimeSlot
    subject_id: str
    block_type: BlockType = BlockType.THEORY


class ClassInstance(BaseModel):
    """A dated class occurrence materialized from the weekly template."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    subject_id: str
    user_id: str | None = None
    date: date
    start_time: datetime
    end_time: datetime
    status: AttendanceStatus = AttendanceStatus.PRESENT
    status_updated_at: datetime | None = None
    status_updated_by: str | None = None

    @property
    def is_attended(self) -> bool:
        return self.status.is_attended

    @property
    def is_absent(self) -> bool:
        return self.status is AttendanceStatus.ABSENT


class SubjectRiskMeta(BaseModel):
    """Derived per-subject risk figures. Recomputed on every query, never stored."""

    model_config = ConfigDict(frozen=True)

    attendance_percentage: int
    consecutive_absences: int
    safe_skips: int
    is_critical: bool
    required_classes: int
    total_scheduled: int
    held: int = 0
    attended: int = 0
    remaining: int = 0


class RiskSummary(BaseModel):
    """Cross-subject risk for the daily digest.

    `count` is the number of critical subjects for CRITICAL and the minimum
    safe-skip count otherwise. `primary_subject` is the tightest subject.
    """

    model_config = ConfigDict(frozen=True)

    level: RiskLevel
    primary_subject: str
    primary_subject_name: str
    count: int


class DaySummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = 0
    completed: int = 0
    remaining: int = 0
    attended: int = 0
    empty_reason: EmptyReason = EmptyReason.NONE
    empty_reason_name: str | None = None
    risk: RiskSummary | None = None


class TodayView(BaseModel):
    model_config = ConfigDict(frozen=True)

    instances: list[ClassInstance] = Field(default_factory=list)
    summary: DaySummary = Field(default_factory=DaySummary)
    meta: dict[str, SubjectRiskMeta] = Field(default_factory=dict)


class AttendanceStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_held: int
    attended: int
    percentage: float
