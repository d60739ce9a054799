"""Semester Instance Generator.

Materializes a weekly timetable into dated class instances for every day of
a semester, skipping holidays and exam blocks and collapsing back-to-back
periods of the same subject into one instance.

    semester = Semester(start_date=date(2026, 1, 5), end_date=date(2026, 4, 30))
    template = WeeklyTemplate.from_rows(rows)
    instances = generate_instances(semester, template, user_id="u1")

The result is meant to be written as one batch (see InstanceStore.add_batch).
"""

from collections.abc import Iterable, Iterator
from datetime import date, datetime, timedelta

from bunkplan.errors import InvalidSemesterError
from bunkplan.intervals import IntervalSet
from bunkplan.logging import get_logger
from bunkplan.models import ClassInstance, DayOfWeek, Semester
from bunkplan.timetable import WeeklyTemplate

log = get_logger(__name__)


def validate_semester(semester: Semester) -> None:
    """Reject inconsistent semester input before any generation runs.

    Raises:
        InvalidSemesterError: If the semester does not end after it starts,
            a blackout block ends before it starts, or the minimum
            attendance percent is outside (0, 100].
    """
    if semester.end_date <= semester.start_date:
        raise InvalidSemesterError(
            f"Semester start {semester.start_date} must be before end {semester.end_date}"
        )
    if not 0 < semester.min_attendance_percent <= 100:
        raise InvalidSemesterError(
            f"Minimum attendance percent must be in (0, 100], got "
            f"{semester.min_attendance_percent}"
        )
    for block in (*semester.holidays, *semester.exam_blocks):
        # Single-day blocks (start == end) are allowed.
        if block.end_date < block.start_date:
            raise InvalidSemesterError(
                f"{block.display_name} ends ({block.end_date}) before it starts "
                f"({block.start_date})"
            )


def blackout_set(semester: Semester) -> IntervalSet:
    """Holidays and exam blocks of a semester as one set."""
    return IntervalSet(semester.holidays).union(semester.exam_blocks)


def iter_semester_days(semester: Semester) -> Iterator[tuple[date, bool]]:
    """Yield (day, blacked_out) for every day from start to end inclusive."""
    blackouts = blackout_set(semester)
    day = semester.start_date
    while day <= semester.end_date:
        yield day, blackouts.contains(day)
        day += timedelta(days=1)


def merge_adjacent(candidates: Iterable[ClassInstance]) -> list[ClassInstance]:
    """Collapse back-to-back instances of the same subject.

    Candidates are sorted by start time first. An instance is folded into the
    previous kept one only when the subject matches and the previous end
    equals this start exactly; any gap or subject change starts a new one.
    """
    merged: list[ClassInstance] = []
    for candidate in sorted(candidates, key=lambda c: c.start_time):
        last = merged[-1] if merged else None
        if (
            last is not None
            and last.subject_id == candidate.subject_id
            and last.end_time == candidate.start_time
        ):
            merged[-1] = last.model_copy(update={"end_time": candidate.end_time})
        else:
            merged.append(candidate)
    return merged


def _candidates_for_day(
    day: date, template: WeeklyTemplate, user_id: str | None
) -> list[ClassInstance]:
    return [
        ClassInstance(
            subject_id=entry.subject_id,
            user_id=user_id,
            date=day,
            start_time=datetime.combine(day, entry.time_slot.start),
            end_time=datetime.combine(day, entry.time_slot.end),
        )
        for entry in template.entries_for(DayOfWeek.from_date(day))
    ]


def generate_instances(
    semester: Semester,
    template: WeeklyTemplate,
    *,
    user_id: str | None = None,
) -> list[ClassInstance]:
    """Expand a weekly template into dated class instances for a semester.

    Args:
        semester: Semester span, threshold and blackout blocks.
        template: Snapshot of the weekly timetable.
        user_id: Owner stamped on every instance (defaults to semester.user_id).

    Returns:
        Instances ordered by day then start time, all with status PRESENT and
        no audit fields. An empty template yields an empty list.

    Raises:
        InvalidSemesterError: If the semester fails validate_semester().
        InvalidTimeSlotError: If a template slot does not end after it starts.
    """
    validate_semester(semester)
    template.validate()

    owner = user_id if user_id is not None else semester.user_id
    instances: list[ClassInstance] = []
    days_walked = 0
    days_blacked_out = 0
    merges = 0

    for day, blacked_out in iter_semester_days(semester):
        days_walked += 1
        if blacked_out:
            days_blacked_out += 1
            continue

        candidates = _candidates_for_day(day, template, owner)
        if not candidates:
            continue

        merged = merge_adjacent(candidates)
        merges += len(candidates) - len(merged)
        instances.extend(merged)

    log.info(
        "semester_instances_generated",
        semester_id=semester.id,
        user_id=owner,
        template_entries=len(template),
        days_walked=days_walked,
        days_blacked_out=days_blacked_out,
        merged_blocks=merges,
        instances=len(instances),
    )
    return instances
