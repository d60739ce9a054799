"""Error hierarchy for semester generation and attendance marking.

Generation and marking raise these to their callers. The read-only risk and
summary builders never raise them for empty or missing data.

Example usage:
    try:
        store.mark_attendance(instance_id, AttendanceStatus.ABSENT, user_id, now)
    except FutureClassError as exc:
        return {"success": False, "error": exc.reason}
"""

from datetime import datetime


class BunkPlanError(Exception):
    """Base exception for all bunkplan errors."""

    pass


class ScheduleValidationError(BunkPlanError):
    """Semester or timetable input rejected before any generation runs.

    No instances are built and nothing is written when this is raised.
    """

    pass


class InvalidSemesterError(ScheduleValidationError):
    """Semester dates, blackout blocks or threshold are inconsistent.

    Examples: end date on or before start date, a holiday ending before it
    starts, a minimum attendance percent outside (0, 100].
    """

    pass


class InvalidTimeSlotError(ScheduleValidationError):
    """A weekly timetable entry whose end time is not after its start time."""

    pass


class AttendanceError(BunkPlanError):
    """Base exception for attendance-marking failures."""

    pass


class FutureClassError(AttendanceError):
    """Attendance marked for a class that has not started yet.

    The instance is left unmodified. `reason` is safe to show to the user.
    """

    reason = "Cannot mark attendance for future classes"

    def __init__(self, instance_id: str, start_time: datetime, now: datetime) -> None:
        self.instance_id = instance_id
        self.start_time = start_time
        self.now = now
        super().__init__(
            f"{self.reason}: instance {instance_id} starts at "
            f"{start_time.isoformat()}, now is {now.isoformat()}"
        )


class InstanceNotFoundError(AttendanceError):
    """No class instance exists with the requested id."""

    reason = "Class not found"

    def __init__(self, instance_id: str) -> None:
        self.instance_id = instance_id
        super().__init__(f"{self.reason}: {instance_id}")


class StoreError(BunkPlanError):
    """Base exception for the in-memory instance store."""

    pass


class DuplicateInstanceError(StoreError):
    """A batch write contained an id that already exists (or repeats itself).

    The whole batch is rejected; the store is left as it was.
    """

    pass


class SemesterExistsError(StoreError):
    """The user already has a semester and replacement was not requested."""

    pass


class SemesterNotFoundError(StoreError):
    """No semester is registered for the user."""

    pass


class BlackoutNotFoundError(StoreError):
    """No holiday or exam block with the requested id exists on the semester."""

    pass
