"""Day Summary Builder - the daily digest behind the "today" view.

Counts today's classes, explains why a day is empty, and attaches the
cross-subject risk computed over the whole semester. Nothing here raises for
missing or empty data: a missing semester degrades to NO_CLASSES with no
risk, and a subject without history reports 100% attendance.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime

from bunkplan.config import get_config
from bunkplan.intervals import find_block
from bunkplan.logging import get_logger
from bunkplan.models import (
    ClassInstance,
    DayOfWeek,
    DaySummary,
    EmptyReason,
    Semester,
    TodayView,
)
from bunkplan.risk import aggregate_risk, compute_risk_by_subject

log = get_logger(__name__)


def classify_empty_day(
    now: datetime, semester: Semester | None
) -> tuple[EmptyReason, str | None]:
    """Explain why a day has no classes.

    Precedence: no semester, holiday, exam block, weekend, then plain
    NO_CLASSES. A holiday inside an exam period is a HOLIDAY and a weekend
    inside an exam period is an EXAM.

    Returns:
        (reason, block display name or None)
    """
    if semester is None:
        return EmptyReason.NO_CLASSES, None

    holiday = find_block(now, semester.holidays)
    if holiday is not None:
        return EmptyReason.HOLIDAY, holiday.display_name

    exam = find_block(now, semester.exam_blocks)
    if exam is not None:
        return EmptyReason.EXAM, exam.display_name

    if DayOfWeek.from_date(now.date()).is_weekend:
        return EmptyReason.WEEKEND, None

    return EmptyReason.NO_CLASSES, None


def build_today(
    now: datetime,
    instances_today: Iterable[ClassInstance],
    semester: Semester | None,
) -> DaySummary:
    """Summarize today's instances.

    completed counts classes whose end_time is before now, everything else is
    remaining; attended counts PRESENT and EXCUSED. The empty reason is only
    classified when there are no instances (NONE otherwise).
    """
    instances = list(instances_today)
    completed = sum(1 for i in instances if i.end_time < now)
    attended = sum(1 for i in instances if i.is_attended)

    if instances:
        reason, reason_name = EmptyReason.NONE, None
    else:
        reason, reason_name = classify_empty_day(now, semester)

    return DaySummary(
        total=len(instances),
        completed=completed,
        remaining=len(instances) - completed,
        attended=attended,
        empty_reason=reason,
        empty_reason_name=reason_name,
    )


def build_today_view(
    now: datetime,
    instances_today: Iterable[ClassInstance],
    semester_instances: Iterable[ClassInstance],
    semester: Semester | None,
    subject_names: Mapping[str, str] | None = None,
    warning_threshold: int | None = None,
) -> TodayView:
    """Assemble today's digest with per-subject risk.

    Args:
        now: Reference instant.
        instances_today: Today's instances for the user.
        semester_instances: Instance history to compute risk from. Only
            instances dated inside the semester span are used.
        semester: The user's semester, or None if it could not be found.
        subject_names: Display names for risk messages, keyed by subject id.
        warning_threshold: Safe-skip count at or below which the day is a
            WARNING (defaults to BUNKPLAN_WARNING_SAFE_SKIPS).

    Returns:
        TodayView. Risk is only computed for subjects that have a class today,
        and omitted entirely when there is no semester or no class today.
    """
    today = sorted(instances_today, key=lambda i: i.start_time)
    summary = build_today(now, today, semester)

    if semester is None:
        if today:
            log.warning("today_view_without_semester", instances=len(today))
        return TodayView(instances=today, summary=summary)

    subject_ids = list(dict.fromkeys(i.subject_id for i in today))
    if not subject_ids:
        return TodayView(instances=today, summary=summary)

    in_span = [i for i in semester_instances if semester.covers(i.date)]
    meta = compute_risk_by_subject(
        now, semester.min_attendance_percent, in_span, subject_ids
    )
    if warning_threshold is None:
        warning_threshold = get_config().warning_safe_skips
    risk = aggregate_risk(meta, subject_names, warning_threshold)

    return TodayView(
        instances=today,
        summary=summary.model_copy(update={"risk": risk}),
        meta=meta,
    )
