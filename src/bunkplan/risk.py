"""Attendance Risk Engine.

Computes, per subject, how many more classes can be missed while still
reaching the minimum attendance percent by the end of the semester, and
rolls the per-subject figures up into a single risk level for the day.

All functions are pure: "now" is always passed in and no clock is read.

Worked example (20 scheduled, 5 held with 3 present, 75% minimum):
    required   = ceil(20 * 0.75)  = 15
    potential  = 3 + 15 remaining = 18
    safe_skips = 18 - 15          = 3
"""

import math
from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal

from bunkplan.logging import get_logger
from bunkplan.models import (
    AttendanceStats,
    ClassInstance,
    RiskLevel,
    RiskSummary,
    SubjectRiskMeta,
)

log = get_logger(__name__)

DEFAULT_SUBJECT_NAME = "Subject"


def required_classes(total_scheduled: int, min_percent: float) -> int:
    """Whole classes needed to reach min_percent of total_scheduled.

    Uses decimal arithmetic so that e.g. 70% of 10 is exactly 7, not
    7.000000000000001 rounded up to 8.
    """
    exact = Decimal(total_scheduled) * Decimal(str(min_percent)) / Decimal(100)
    return math.ceil(exact)


def attendance_percentage(attended: int, held: int) -> int:
    """Percentage rounded half up and clamped to 100; 100 when nothing is held."""
    if held <= 0:
        return 100
    return min(100, (200 * attended + held) // (2 * held))


def consecutive_absences(held: Iterable[ClassInstance]) -> int:
    """Length of the ABSENT run counting back from the most recent held class.

    PRESENT and EXCUSED both end the run.
    """
    streak = 0
    for instance in sorted(held, key=lambda i: (i.date, i.start_time), reverse=True):
        if not instance.is_absent:
            break
        streak += 1
    return streak


def compute_subject_risk(
    now: datetime,
    min_percent: float,
    instances: Iterable[ClassInstance],
) -> SubjectRiskMeta:
    """Compute risk figures for one subject.

    Args:
        now: Reference instant; classes with start_time <= now are held.
        min_percent: Minimum attendance percent for the semester.
        instances: Every instance of the subject within the semester span,
                   past and future, in any order.

    Returns:
        SubjectRiskMeta. safe_skips is never negative; a subject that can no
        longer reach the threshold reports 0 and is critical.
    """
    instances = list(instances)
    held = [i for i in instances if i.start_time <= now]
    attended = sum(1 for i in held if i.is_attended)
    remaining = len(instances) - len(held)

    required = required_classes(len(instances), min_percent)
    potential = attended + remaining
    safe_skips = max(0, potential - required)

    return SubjectRiskMeta(
        attendance_percentage=attendance_percentage(attended, len(held)),
        consecutive_absences=consecutive_absences(held),
        safe_skips=safe_skips,
        is_critical=safe_skips <= 0,
        required_classes=required,
        total_scheduled=len(instances),
        held=len(held),
        attended=attended,
        remaining=remaining,
    )


def compute_risk_by_subject(
    now: datetime,
    min_percent: float,
    instances: Iterable[ClassInstance],
    subject_ids: Iterable[str] | None = None,
) -> dict[str, SubjectRiskMeta]:
    """Group a mixed list of instances by subject and compute each one's risk.

    Args:
        subject_ids: Restrict (and order) the result to these subjects. A
                     listed subject without instances gets the empty-history
                     defaults. When None, every subject present is included
                     in order of first appearance.
    """
    by_subject: dict[str, list[ClassInstance]] = {}
    for instance in instances:
        by_subject.setdefault(instance.subject_id, []).append(instance)

    wanted = list(by_subject) if subject_ids is None else list(dict.fromkeys(subject_ids))
    return {
        subject_id: compute_subject_risk(now, min_percent, by_subject.get(subject_id, []))
        for subject_id in wanted
    }


def aggregate_risk(
    metas: Mapping[str, SubjectRiskMeta],
    subject_names: Mapping[str, str] | None = None,
    warning_threshold: int = 2,
) -> RiskSummary | None:
    """Roll per-subject risk up into one level for the daily digest.

    Priority is strict: any critical subject makes the day CRITICAL, then a
    tightest subject with at most warning_threshold safe skips makes it
    WARNING, otherwise GOOD. Ties on the minimum go to the first subject in
    iteration order.

    Returns:
        RiskSummary, or None when there are no subjects.
    """
    if not metas:
        return None

    subject_names = subject_names or {}
    critical = 0
    tightest_id = ""
    tightest_skips: int | None = None
    for subject_id, meta in metas.items():
        if meta.is_critical:
            critical += 1
        if tightest_skips is None or meta.safe_skips < tightest_skips:
            tightest_skips = meta.safe_skips
            tightest_id = subject_id

    if critical > 0:
        level, count = RiskLevel.CRITICAL, critical
    elif tightest_skips <= warning_threshold:
        level, count = RiskLevel.WARNING, tightest_skips
    else:
        level, count = RiskLevel.GOOD, tightest_skips

    summary = RiskSummary(
        level=level,
        primary_subject=tightest_id,
        primary_subject_name=subject_names.get(tightest_id, DEFAULT_SUBJECT_NAME),
        count=count,
    )
    log.debug(
        "risk_aggregated",
        subjects=len(metas),
        critical=critical,
        level=level.value,
        tightest=tightest_id,
        count=count,
    )
    return summary


def render_risk_message(summary: RiskSummary) -> str:
    """English one-liner for a RiskSummary."""
    if summary.level is RiskLevel.CRITICAL:
        plural = "s" if summary.count > 1 else ""
        return f"You have no room for error in {summary.count} subject{plural}."
    if summary.level is RiskLevel.WARNING:
        return (
            f"Maximum safe absences remaining: {summary.count} "
            f"(in {summary.primary_subject_name})."
        )
    return f"Maximum safe absences remaining: {summary.count} (in your tightest subject)."


def cumulative_stats(
    instances: Iterable[ClassInstance], subject_id: str | None = None
) -> AttendanceStats:
    """Attendance totals over the given history, optionally for one subject.

    Every instance passed counts as held; filter out future classes first.
    The percentage is unrounded and 0.0 for an empty history.
    """
    selected = [i for i in instances if subject_id is None or i.subject_id == subject_id]
    attended = sum(1 for i in selected if i.is_attended)
    total = len(selected)
    return AttendanceStats(
        total_held=total,
        attended=attended,
        percentage=(attended / total * 100) if total > 0 else 0.0,
    )
