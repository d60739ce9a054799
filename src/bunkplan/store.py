"""In-memory reference store for class instances and semesters.

Stands in for the persistence collaborator: batch writes are all-or-nothing,
and concurrent marking of the same instance is last-write-wins. A real
deployment would replace this with a database-backed implementation that
keeps the same guarantees.
"""

import threading
from collections.abc import Callable, Iterable, Mapping
from datetime import date, datetime

from bunkplan.errors import (
    BlackoutNotFoundError,
    DuplicateInstanceError,
    InstanceNotFoundError,
    SemesterExistsError,
    SemesterNotFoundError,
)
from bunkplan.generator import generate_instances, validate_semester
from bunkplan.logging import get_logger
from bunkplan.marking import mark_attendance
from bunkplan.models import (
    AttendanceStatus,
    BlackoutBlock,
    ClassInstance,
    ExamBlock,
    Holiday,
    Semester,
    TodayView,
)
from bunkplan.summary import build_today_view
from bunkplan.timetable import WeeklyTemplate

logger = get_logger(__name__)


class InstanceStore:
    """Thread-safe in-memory class instance storage keyed by instance id."""

    def __init__(self) -> None:
        self._instances: dict[str, ClassInstance] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._instances)

    def add_batch(
        self, instances: Iterable[ClassInstance], *, replace_user: str | None = None
    ) -> int:
        """Insert a batch of instances atomically.

        Readers see either none or all of the batch. With replace_user, that
        user's existing instances are dropped in the same step.

        Returns:
            Number of instances written.

        Raises:
            DuplicateInstanceError: If any id already exists or repeats within
                the batch. Nothing is written in that case.
        """
        batch = list(instances)
        with self._lock:
            base = self._instances
            if replace_user is not None:
                base = {k: v for k, v in base.items() if v.user_id != replace_user}
            staged: dict[str, ClassInstance] = {}
            for instance in batch:
                if instance.id in base or instance.id in staged:
                    raise DuplicateInstanceError(f"Duplicate class instance id {instance.id}")
                staged[instance.id] = instance
            replaced = len(self._instances) - len(base)
            self._instances = {**base, **staged}

        logger.info("instance_batch_written", count=len(batch), replaced=replaced)
        return len(batch)

    def get(self, instance_id: str) -> ClassInstance:
        """Raises InstanceNotFoundError for an unknown id."""
        try:
            return self._instances[instance_id]
        except KeyError:
            raise InstanceNotFoundError(instance_id) from None

    def mark_attendance(
        self,
        instance_id: str,
        new_status: AttendanceStatus,
        acting_user_id: str,
        now: datetime,
    ) -> ClassInstance:
        """Mark a stored instance; the last writer's audit fields win.

        Raises:
            InstanceNotFoundError: If no instance has this id.
            FutureClassError: If the class has not started; nothing is stored.
        """
        with self._lock:
            updated = mark_attendance(self.get(instance_id), new_status, acting_user_id, now)
            self._instances = {**self._instances, instance_id: updated}
        return updated

    def for_day(self, user_id: str | None, day: date) -> list[ClassInstance]:
        """A user's instances on one calendar day, ordered by start time."""
        found = [
            i for i in self._instances.values() if i.user_id == user_id and i.date == day
        ]
        return sorted(found, key=lambda i: i.start_time)

    def for_subjects(
        self,
        user_id: str | None,
        subject_ids: Iterable[str],
        start: date,
        end: date,
    ) -> list[ClassInstance]:
        """A user's instances for the given subjects dated within [start, end]."""
        wanted = set(subject_ids)
        found = [
            i
            for i in self._instances.values()
            if i.user_id == user_id and i.subject_id in wanted and start <= i.date <= end
        ]
        return sorted(found, key=lambda i: i.start_time)

    def remove_subject(self, subject_id: str) -> int:
        """Cascade delete every instance of a subject. Returns the number removed."""
        with self._lock:
            kept = {k: v for k, v in self._instances.items() if v.subject_id != subject_id}
            removed = len(self._instances) - len(kept)
            self._instances = kept
        logger.info("subject_instances_removed", subject_id=subject_id, count=removed)
        return removed


class SemesterRegistry:
    """One semester per user, created together with its class instances."""

    def __init__(self, store: InstanceStore) -> None:
        self.store = store
        self._semesters: dict[str, Semester] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Semester | None:
        return self._semesters.get(user_id)

    def has_semester(self, user_id: str) -> bool:
        return user_id in self._semesters

    def create_semester(
        self,
        user_id: str,
        semester: Semester,
        template: WeeklyTemplate,
        *,
        replace: bool = False,
    ) -> list[ClassInstance]:
        """Validate, generate and persist a semester with its instances.

        The semester is only recorded once its instance batch has been
        written, so a failure leaves neither behind. An empty template still
        creates the semester. With replace=True an existing semester and all
        of the user's instances are swapped out in one batch write.

        Raises:
            SemesterExistsError: If the user already has a semester and
                replace is False.
            ScheduleValidationError: On invalid semester or timetable input.
            DuplicateInstanceError: If the batch collides with stored ids.
        """
        semester = semester.model_copy(update={"user_id": user_id})
        instances = generate_instances(semester, template, user_id=user_id)

        with self._lock:
            existing = self._semesters.get(user_id)
            if existing is not None and not replace:
                raise SemesterExistsError(
                    f"User {user_id} already has semester {existing.id}"
                )
            self.store.add_batch(instances, replace_user=user_id if replace else None)
            self._semesters[user_id] = semester

        logger.info(
            "semester_created",
            user_id=user_id,
            semester_id=semester.id,
            replaced=existing.id if existing is not None else None,
            start=semester.start_date.isoformat(),
            end=semester.end_date.isoformat(),
            instances=len(instances),
        )
        return instances

    def add_holiday(
        self, user_id: str, start_date: date, end_date: date, name: str | None = None
    ) -> Holiday:
        """Add a holiday to the user's semester.

        Blackout edits change how empty days are classified. Instances that
        were already generated are kept as they are.

        Raises:
            SemesterNotFoundError: If the user has no semester.
            InvalidSemesterError: If the holiday ends before it starts.
        """
        holiday = Holiday(start_date=start_date, end_date=end_date, name=name)
        self._update_blackouts(user_id, "holidays", lambda blocks: [*blocks, holiday])
        return holiday

    def remove_holiday(self, user_id: str, holiday_id: str) -> None:
        """Raises BlackoutNotFoundError if the semester has no such holiday."""
        self._update_blackouts(user_id, "holidays", _without(holiday_id))

    def add_exam_block(
        self, user_id: str, start_date: date, end_date: date, name: str | None = None
    ) -> ExamBlock:
        """Add an exam block to the user's semester (see add_holiday)."""
        exam = ExamBlock(start_date=start_date, end_date=end_date, name=name)
        self._update_blackouts(user_id, "exam_blocks", lambda blocks: [*blocks, exam])
        return exam

    def remove_exam_block(self, user_id: str, block_id: str) -> None:
        """Raises BlackoutNotFoundError if the semester has no such exam block."""
        self._update_blackouts(user_id, "exam_blocks", _without(block_id))

    def _update_blackouts(
        self,
        user_id: str,
        field: str,
        change: Callable[[list[BlackoutBlock]], list[BlackoutBlock]],
    ) -> None:
        with self._lock:
            semester = self._semesters.get(user_id)
            if semester is None:
                raise SemesterNotFoundError(f"No semester for user {user_id}")
            updated = semester.model_copy(update={field: change(getattr(semester, field))})
            validate_semester(updated)
            self._semesters[user_id] = updated

        logger.info(
            "semester_blackouts_updated",
            user_id=user_id,
            semester_id=updated.id,
            field=field,
            count=len(getattr(updated, field)),
        )

    def today_view(
        self,
        user_id: str,
        now: datetime,
        subject_names: Mapping[str, str] | None = None,
    ) -> TodayView:
        """Build the user's daily digest from stored data."""
        semester = self.get(user_id)
        today = self.store.for_day(user_id, now.date())
        history: list[ClassInstance] = []
        if semester is not None and today:
            history = self.store.for_subjects(
                user_id,
                {i.subject_id for i in today},
                semester.start_date,
                semester.end_date,
            )
        return build_today_view(now, today, history, semester, subject_names)


def _without(block_id: str) -> Callable[[list[BlackoutBlock]], list[BlackoutBlock]]:
    def change(blocks: list[BlackoutBlock]) -> list[BlackoutBlock]:
        kept = [b for b in blocks if b.id != block_id]
        if len(kept) == len(blocks):
            raise BlackoutNotFoundError(f"No blackout block {block_id}")
        return kept

    return change
