"""Semester attendance planning for the "how many classes can I skip" question.

Materializes a weekly timetable into dated class instances and computes,
per subject, attendance, required classes and the remaining safe-skip budget.
"""

from bunkplan.errors import (
    BlackoutNotFoundError,
    BunkPlanError,
    FutureClassError,
    InstanceNotFoundError,
    InvalidSemesterError,
    InvalidTimeSlotError,
    ScheduleValidationError,
    SemesterExistsError,
    SemesterNotFoundError,
)
from bunkplan.generator import generate_instances
from bunkplan.intervals import IntervalSet
from bunkplan.marking import mark_attendance
from bunkplan.models import (
    AttendanceStatus,
    BlockType,
    ClassInstance,
    DayOfWeek,
    DaySummary,
    EmptyReason,
    ExamBlock,
    Holiday,
    RiskLevel,
    RiskSummary,
    Semester,
    SubjectRiskMeta,
    TimeSlot,
    TodayView,
    WeeklyTemplateEntry,
)
from bunkplan.risk import aggregate_risk, compute_subject_risk, render_risk_message
from bunkplan.store import InstanceStore, SemesterRegistry
from bunkplan.summary import build_today, build_today_view
from bunkplan.timetable import WeeklyTemplate

__all__ = [
    "AttendanceStatus",
    "BlackoutNotFoundError",
    "BlockType",
    "BunkPlanError",
    "ClassInstance",
    "DayOfWeek",
    "DaySummary",
    "EmptyReason",
    "ExamBlock",
    "FutureClassError",
    "Holiday",
    "InstanceNotFoundError",
    "InstanceStore",
    "IntervalSet",
    "InvalidSemesterError",
    "InvalidTimeSlotError",
    "RiskLevel",
    "RiskSummary",
    "ScheduleValidationError",
    "Semester",
    "SemesterExistsError",
    "SemesterNotFoundError",
    "SemesterRegistry",
    "SubjectRiskMeta",
    "TimeSlot",
    "TodayView",
    "WeeklyTemplate",
    "WeeklyTemplateEntry",
    "aggregate_risk",
    "build_today",
    "build_today_view",
    "compute_subject_risk",
    "generate_instances",
    "mark_attendance",
    "render_risk_message",
]
