from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from lms.models.progress import AccessControl, StudentProgress
from lms.models.student import CompletedWeek, Student
from lms.models.submission import HomeworkSubmission
from lms.models.week import Week, WeekScope
from lms.repos.progress_repo import InMemoryProgressRepo
from lms.repos.student_repo import InMemoryStudentRepo
from lms.repos.submission_repo import InMemorySubmissionRepo
from lms.repos.week_repo import InMemoryWeekRepo
from lms.services.errors import DuplicateKeyError
from tests.conftest import SCOPE, run

NOW = datetime.now(UTC)


def test_progress_unique_per_student_week() -> None:
    repo = InMemoryProgressRepo()
    sid, wid = uuid4(), uuid4()
    run(repo.add(StudentProgress.new(student_id=sid, week_id=wid, now=NOW)))
    with pytest.raises(DuplicateKeyError):
        run(repo.add(StudentProgress.new(student_id=sid, week_id=wid, now=NOW)))


def test_record_score_refuses_completed_record() -> None:
    repo = InMemoryProgressRepo()
    sid, wid = uuid4(), uuid4()
    run(repo.add(StudentProgress.new(student_id=sid, week_id=wid, now=NOW)))
    run(repo.record_score(sid, wid, score=100, status="completed", now=NOW))
    assert run(repo.record_score(sid, wid, score=50, status="in_progress", now=NOW)) is None


def test_unlock_returns_none_when_already_open() -> None:
    repo = InMemoryProgressRepo()
    sid, wid = uuid4(), uuid4()
    access = AccessControl(is_unlocked=True, unlocked_by="auto")
    run(repo.add(StudentProgress.new(student_id=sid, week_id=wid, now=NOW)))
    assert run(repo.unlock(sid, wid, access, NOW)) is not None
    assert run(repo.unlock(sid, wid, access, NOW)) is None


def test_submission_unique_per_material() -> None:
    repo = InMemorySubmissionRepo()
    kwargs = dict(
        student_id=uuid4(),
        week_id=uuid4(),
        material_id="m",
        title="t",
        files=(),
        submitted_at=NOW,
        is_late=False,
        late_penalty=0,
    )
    run(repo.add(HomeworkSubmission.new(**kwargs)))
    with pytest.raises(DuplicateKeyError):
        run(repo.add(HomeworkSubmission.new(**kwargs)))


def test_week_number_unique_within_scope_only() -> None:
    repo = InMemoryWeekRepo()
    other = WeekScope(year="Year 8", curriculum="Edexcel", student_type="Center")
    run(repo.add(Week.new(week_number=1, title="a", scope=SCOPE)))
    run(repo.add(Week.new(week_number=1, title="b", scope=other)))
    with pytest.raises(DuplicateKeyError):
        run(repo.add(Week.new(week_number=1, title="c", scope=SCOPE)))

    assert run(repo.find_by_number(1, scope=other)).title == "b"


def test_advance_current_week_only_from_matching_week() -> None:
    repo = InMemoryStudentRepo()
    student = Student.new(name="s", scope=SCOPE)
    run(repo.add(student))

    week2 = CompletedWeek(week_number=2, completed_at=NOW, score=100)
    assert run(repo.advance_current_week(student.id, week2)) is None

    week1 = CompletedWeek(week_number=1, completed_at=NOW, score=100)
    assert run(repo.advance_current_week(student.id, week1)).current_week == 2
