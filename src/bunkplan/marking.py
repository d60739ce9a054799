"""Attendance marking - the only mutation a class instance goes through.

Any status can move to any other status. The single guard is temporal: a
class cannot be marked before it starts.
"""

from datetime import datetime

from bunkplan.errors import FutureClassError
from bunkplan.logging import get_logger
from bunkplan.models import AttendanceStatus, ClassInstance

log = get_logger(__name__)


def mark_attendance(
    instance: ClassInstance,
    new_status: AttendanceStatus,
    acting_user_id: str,
    now: datetime,
) -> ClassInstance:
    """Return a copy of instance with the new status and audit fields.

    Status, status_updated_at (= now) and status_updated_by (= acting user)
    are always set together. The input instance is never modified.

    Raises:
        FutureClassError: If now is before the instance's start time.
    """
    new_status = AttendanceStatus(new_status)
    if now < instance.start_time:
        log.info(
            "attendance_rejected_future",
            instance_id=instance.id,
            start_time=instance.start_time.isoformat(),
            now=now.isoformat(),
        )
        raise FutureClassError(instance.id, instance.start_time, now)

    updated = instance.model_copy(
        update={
            "status": new_status,
            "status_updated_at": now,
            "status_updated_by": acting_user_id,
        }
    )
    log.info(
        "attendance_marked",
        instance_id=instance.id,
        subject_id=instance.subject_id,
        previous=instance.status.value,
        status=new_status.value,
        by=acting_user_id,
    )
    return updated
