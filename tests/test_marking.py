"""Tests for attendance marking and the in-memory reference store."""
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta

import pytest

from bunkplan.errors import DuplicateInstanceError, FutureClassError, InstanceNotFoundError
from bunkplan.marking import mark_attendance
from bunkplan.models import AttendanceStatus
from bunkplan.store import InstanceStore
from tests.factories import make_instance

START = datetime(2026, 1, 14, 10, 0)


def test_marking_a_future_class_is_rejected() -> None:
    instance = make_instance("maths", START)

    with pytest.raises(FutureClassError) as exc_info:
        mark_attendance(instance, AttendanceStatus.ABSENT, "u1", START - timedelta(hours=1))

    assert exc_info.value.instance_id == instance.id
    assert exc_info.value.reason == "Cannot mark attendance for future classes"
    assert instance.status is AttendanceStatus.PRESENT
    assert instance.status_updated_at is None


def test_marking_after_start_sets_status_and_audit_fields() -> None:
    instance = make_instance("maths", START)
    now = START + timedelta(minutes=5)

    updated = mark_attendance(instance, AttendanceStatus.ABSENT, "u1", now)

    assert updated.status is AttendanceStatus.ABSENT
    assert updated.status_updated_at == now
    assert updated.status_updated_by == "u1"
    assert updated.id == instance.id
    assert instance.status is AttendanceStatus.PRESENT


def test_marking_at_exact_start_is_allowed() -> None:
    updated = mark_attendance(make_instance("maths", START), AttendanceStatus.EXCUSED, "u1", START)

    assert updated.status is AttendanceStatus.EXCUSED


@pytest.mark.parametrize("before", list(AttendanceStatus))
@pytest.mark.parametrize("after", list(AttendanceStatus))
def test_any_status_reaches_any_other(before: AttendanceStatus, after: AttendanceStatus) -> None:
    instance = make_instance("maths", START, status=before)

    assert mark_attendance(instance, after, "u1", START).status is after


def test_status_accepts_plain_strings() -> None:
    updated = mark_attendance(make_instance("maths", START), "ABSENT", "u1", START)

    assert updated.status is AttendanceStatus.ABSENT


def test_store_marks_by_id_and_keeps_last_writer() -> None:
    store = InstanceStore()
    instance = make_instance("maths", START)
    store.add_batch([instance])

    store.mark_attendance(instance.id, AttendanceStatus.ABSENT, "u1", START + timedelta(minutes=1))
    store.mark_attendance(instance.id, AttendanceStatus.EXCUSED, "admin", START + timedelta(minutes=2))

    stored = store.get(instance.id)
    assert stored.status is AttendanceStatus.EXCUSED
    assert stored.status_updated_by == "admin"
    assert stored.status_updated_at == START + timedelta(minutes=2)


def test_store_rejects_future_marking_without_writing() -> None:
    store = InstanceStore()
    instance = make_instance("maths", START)
    store.add_batch([instance])

    with pytest.raises(FutureClassError):
        store.mark_attendance(instance.id, AttendanceStatus.ABSENT, "u1", START - timedelta(seconds=1))

    assert store.get(instance.id) == instance


def test_store_unknown_instance() -> None:
    with pytest.raises(InstanceNotFoundError):
        InstanceStore().mark_attendance("missing", AttendanceStatus.ABSENT, "u1", START)


def test_concurrent_marking_of_different_instances() -> None:
    store = InstanceStore()
    instances = [make_instance("maths", START + timedelta(days=n)) for n in range(20)]
    store.add_batch(instances)
    now = START + timedelta(days=30)

    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(lambda i: store.mark_attendance(i.id, AttendanceStatus.ABSENT, "u1", now), instances))

    assert all(store.get(i.id).status is AttendanceStatus.ABSENT for i in instances)


def test_batch_write_is_all_or_nothing() -> None:
    store = InstanceStore()
    existing = make_instance("maths", START)
    store.add_batch([existing])
    fresh = make_instance("chem", START + timedelta(hours=1))

    with pytest.raises(DuplicateInstanceError):
        store.add_batch([fresh, existing])

    assert len(store) == 1
    with pytest.raises(InstanceNotFoundError):
        store.get(fresh.id)


def test_batch_with_repeated_id_is_rejected() -> None:
    store = InstanceStore()
    instance = make_instance("maths", START)

    with pytest.raises(DuplicateInstanceError):
        store.add_batch([instance, instance])

    assert len(store) == 0


def test_store_queries() -> None:
    store = InstanceStore()
    store.add_batch(
        [
            make_instance("maths", datetime(2026, 1, 14, 14, 0)),
            make_instance("maths", datetime(2026, 1, 14, 9, 0)),
            make_instance("chem", datetime(2026, 1, 15, 9, 0)),
            make_instance("maths", datetime(2026, 1, 14, 9, 0), user_id="u2"),
        ]
    )

    today = store.for_day("u1", date(2026, 1, 14))
    assert [i.start_time.hour for i in today] == [9, 14]
    assert len(store.for_subjects("u1", ["chem"], date(2026, 1, 1), date(2026, 1, 31))) == 1
    assert store.for_subjects("u1", ["chem"], date(2026, 1, 1), date(2026, 1, 14)) == []
    assert store.remove_subject("maths") == 3
    assert len(store) == 1
