"""Tests for the day summary builder and the assembled today view."""
from datetime import date, datetime

import pytest

from bunkplan.models import AttendanceStatus, EmptyReason, ExamBlock, Holiday, RiskLevel, Semester
from bunkplan.summary import build_today, build_today_view, classify_empty_day
from tests.factories import daily_series, make_instance

SEMESTER = Semester(
    start_date=date(2026, 1, 5),
    end_date=date(2026, 4, 30),
    holidays=[
        Holiday(start_date=date(2026, 1, 10), end_date=date(2026, 1, 10), name="Founders Day"),
        Holiday(start_date=date(2026, 3, 4), end_date=date(2026, 3, 4)),
    ],
    exam_blocks=[
        ExamBlock(start_date=date(2026, 3, 2), end_date=date(2026, 3, 8), name="Mid-Sem"),
        ExamBlock(start_date=date(2026, 4, 20), end_date=date(2026, 4, 24)),
    ],
)


@pytest.mark.parametrize(
    "now, reason, name",
    [
        # Saturday declared as a holiday
        (datetime(2026, 1, 10, 11, 0), EmptyReason.HOLIDAY, "Founders Day"),
        # holiday inside an exam block
        (datetime(2026, 3, 4, 9, 0), EmptyReason.HOLIDAY, "Holiday"),
        # Saturday inside an exam block
        (datetime(2026, 3, 7, 9, 0), EmptyReason.EXAM, "Mid-Sem"),
        (datetime(2026, 4, 21, 9, 0), EmptyReason.EXAM, "Exam Period"),
        (datetime(2026, 1, 11, 9, 0), EmptyReason.WEEKEND, None),
        (datetime(2026, 1, 14, 9, 0), EmptyReason.NO_CLASSES, None),
    ],
)
def test_empty_reason_precedence(now: datetime, reason: EmptyReason, name: str | None) -> None:
    summary = build_today(now, [], SEMESTER)

    assert summary.total == 0
    assert summary.empty_reason is reason
    assert summary.empty_reason_name == name


def test_empty_day_without_semester_is_no_classes() -> None:
    assert classify_empty_day(datetime(2026, 1, 10, 9, 0), None) == (EmptyReason.NO_CLASSES, None)


def test_counts_cover_todays_instances_only() -> None:
    now = datetime(2026, 1, 14, 11, 0)
    today = [
        make_instance("maths", datetime(2026, 1, 14, 8, 0)),
        make_instance("chem", datetime(2026, 1, 14, 9, 0), status=AttendanceStatus.ABSENT),
        make_instance("bio", datetime(2026, 1, 14, 10, 30), status=AttendanceStatus.EXCUSED),
        make_instance("maths", datetime(2026, 1, 14, 14, 0)),
    ]

    summary = build_today(now, today, SEMESTER)

    assert summary.total == 4
    assert summary.completed == 2
    assert summary.remaining == 2  # 10:30-11:20 is still running
    assert summary.attended == 3  # future class keeps its PRESENT placeholder
    assert summary.empty_reason is EmptyReason.NONE
    assert summary.risk is None


def test_class_ending_exactly_now_is_not_completed() -> None:
    instance = make_instance("maths", datetime(2026, 1, 14, 8, 0), minutes=60)

    summary = build_today(datetime(2026, 1, 14, 9, 0), [instance], SEMESTER)

    assert (summary.completed, summary.remaining) == (0, 1)


def test_non_empty_holiday_is_not_classified() -> None:
    """Classes on a blackout day (added by hand) still show as a normal day."""
    instance = make_instance("maths", datetime(2026, 1, 10, 9, 0))

    summary = build_today(datetime(2026, 1, 10, 12, 0), [instance], SEMESTER)

    assert summary.empty_reason is EmptyReason.NONE


def test_today_view_attaches_risk_for_todays_subjects() -> None:
    now = datetime(2026, 1, 9, 9, 30)
    maths = daily_series("maths", 20, [AttendanceStatus.PRESENT, AttendanceStatus.ABSENT] * 2)
    chem = daily_series("chem", 4, first=datetime(2026, 1, 9, 11, 0))
    outside = make_instance("maths", datetime(2025, 12, 1, 9, 0), status=AttendanceStatus.ABSENT)
    today = [i for i in maths + chem if i.date == now.date()]

    view = build_today_view(now, today, maths + chem + [outside], SEMESTER, {"maths": "Mathematics"})

    assert [i.subject_id for i in view.instances] == ["maths", "chem"]
    assert set(view.meta) == {"maths", "chem"}
    assert view.meta["maths"].total_scheduled == 20
    assert view.meta["maths"].safe_skips == 3
    assert view.meta["chem"].safe_skips == 1
    risk = view.summary.risk
    assert risk.level is RiskLevel.WARNING
    assert risk.primary_subject == "chem"
    assert risk.count == 1


def test_today_view_threshold_defaults_to_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BUNKPLAN_WARNING_SAFE_SKIPS", "0")
    now = datetime(2026, 1, 9, 9, 30)
    chem = daily_series("chem", 4, first=datetime(2026, 1, 9, 11, 0))

    view = build_today_view(now, chem[:1], chem, SEMESTER)

    assert view.summary.risk.level is RiskLevel.GOOD


def test_today_view_without_semester_skips_risk() -> None:
    now = datetime(2026, 1, 9, 9, 30)
    today = [make_instance("maths", datetime(2026, 1, 9, 9, 0))]

    view = build_today_view(now, today, today, None)

    assert view.meta == {}
    assert view.summary.risk is None
    assert view.summary.total == 1


def test_today_view_for_empty_day() -> None:
    view = build_today_view(datetime(2026, 1, 11, 9, 0), [], [], SEMESTER)

    assert view.instances == []
    assert view.meta == {}
    assert view.summary.empty_reason is EmptyReason.WEEKEND
    assert view.summary.risk is None
