from __future__ import annotations

from dataclasses import replace
from uuid import uuid4

from lms.models.progress import AccessControl, StudentProgress
from lms.models.student import Student
from lms.models.week import UnlockConditions, Week
from lms.services.access import can_access
from tests.conftest import SCOPE

STUDENT = Student.new(name="Omar", scope=SCOPE)


def _week(number: int, **conditions) -> Week:
    return Week.new(
        week_number=number,
        title=f"Week {number}",
        scope=SCOPE,
        unlock_conditions=UnlockConditions(**conditions),
    )


def _progress(week: Week, *, unlocked: bool = False, status="not_started"):
    return StudentProgress(
        id=uuid4(),
        student_id=STUDENT.id,
        week_id=week.id,
        status=status,
        access_control=AccessControl(is_unlocked=unlocked),
    )


def test_first_and_current_weeks_are_open() -> None:
    assert can_access(STUDENT, _week(1), None)
    on_week_3 = replace(STUDENT, current_week=3)
    assert can_access(on_week_3, _week(3), None)
    assert can_access(on_week_3, _week(2), None)


def test_future_week_is_locked_until_unlocked() -> None:
    week = _week(2)
    assert not can_access(STUDENT, week, None)
    assert not can_access(STUDENT, week, _progress(week))
    assert can_access(STUDENT, week, _progress(week, unlocked=True))


def test_week_without_previous_dependency_is_open() -> None:
    assert can_access(STUDENT, _week(5, depends_on_previous_week=False), None)


def test_manual_only_week_needs_unlock_or_completion() -> None:
    week = _week(1, manual_unlock_only=True)
    assert not can_access(STUDENT, week, None)
    assert can_access(STUDENT, week, _progress(week, unlocked=True))
    assert can_access(STUDENT, week, _progress(week, status="completed"))
