from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from lms.models.submission import HomeworkSubmission
from lms.repos.submission_repo import InMemorySubmissionRepo
from lms.services.errors import (
    InvalidTransitionError,
    SubmissionNotFoundError,
    SubmissionValidationError,
)
from lms.services.grading_service import GradingService, compute_grade
from tests.conftest import run


def _service_with(**overrides) -> tuple[GradingService, HomeworkSubmission]:
    repo = InMemorySubmissionRepo()
    submission = HomeworkSubmission.new(
        student_id=uuid4(),
        week_id=uuid4(),
        material_id="hw-1",
        title="HW",
        files=(),
        submitted_at=datetime.now(UTC),
        is_late=overrides.get("is_late", False),
        late_penalty=overrides.get("late_penalty", 0),
    )
    run(repo.add(submission))
    return GradingService(repo), submission


@pytest.mark.parametrize(
    ("points", "max_points", "percentage", "letter"),
    [
        (97, 100, 97, "A+"),
        (18.5, 20, 93, "A"),  # 92.5 rounds up
        (9, 10, 90, "A-"),
        (8.7, 10, 87, "B+"),
        (83, 100, 83, "B"),
        (4, 5, 80, "B-"),
        (77, 100, 77, "C+"),
        (73, 100, 73, "C"),
        (7, 10, 70, "C-"),
        (67, 100, 67, "D+"),
        (13, 20, 65, "D"),
        (64, 100, 64, "F"),
        (0, 10, 0, "F"),
    ],
)
def test_compute_grade_table(points, max_points, percentage, letter) -> None:
    grade = compute_grade(points, max_points)
    assert grade.percentage == percentage
    assert grade.letter_grade == letter


def test_late_penalty_is_subtracted_before_letter() -> None:
    assert compute_grade(95, 100, late_penalty=10).letter_grade == "B"
    assert compute_grade(5, 100, late_penalty=10).percentage == 0


@pytest.mark.parametrize(("points", "max_points"), [(11, 10), (-1, 10), (1, 0)])
def test_compute_grade_rejects_bad_points(points, max_points) -> None:
    with pytest.raises(SubmissionValidationError):
        compute_grade(points, max_points)


def test_grade_sets_status_feedback_and_grader() -> None:
    service, submission = _service_with()
    graded = run(
        service.grade(
            submission.id, points=8, max_points=10, feedback="Good", grader_id="t-1"
        )
    )
    assert graded.status == "graded"
    assert graded.grade.percentage == 80
    assert graded.feedback.text == "Good"
    assert graded.feedback.graded_by == "t-1"


def test_late_submission_grade_applies_penalty() -> None:
    service, submission = _service_with(is_late=True, late_penalty=20)
    graded = run(
        service.grade(submission.id, points=10, max_points=10, feedback=None, grader_id="t")
    )
    assert graded.grade.percentage == 80


def test_regrade_and_return_transitions() -> None:
    service, submission = _service_with()
    run(service.grade(submission.id, points=5, max_points=10, feedback=None, grader_id="t"))
    regraded = run(
        service.grade(submission.id, points=9, max_points=10, feedback=None, grader_id="t")
    )
    assert regraded.grade.percentage == 90

    returned = run(service.return_submission(submission.id))
    assert returned.status == "returned"

    with pytest.raises(InvalidTransitionError):
        run(service.grade(submission.id, points=9, max_points=10, feedback=None, grader_id="t"))


def test_return_requires_graded() -> None:
    service, submission = _service_with()
    with pytest.raises(InvalidTransitionError):
        run(service.return_submission(submission.id))


def test_grade_unknown_submission() -> None:
    service, _ = _service_with()
    with pytest.raises(SubmissionNotFoundError):
        run(service.grade(uuid4(), points=1, max_points=1, feedback=None, grader_id="t"))
