"""Admin grading of homework submissions.

Grading never touches the progress ledger: a graded submission already
counts as done.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from lms.models.submission import Feedback, Grade, HomeworkSubmission, letter_grade
from lms.repos.submission_repo import SubmissionRepo
from lms.services.errors import (
    InvalidTransitionError,
    SubmissionNotFoundError,
    SubmissionValidationError,
)

logger = logging.getLogger(__name__)

# from-status -> allowed to-statuses
_TRANSITIONS: dict[str, frozenset[str]] = {
    "submitted": frozenset({"graded"}),
    "late": frozenset({"graded"}),
    "graded": frozenset({"graded", "returned"}),
    "returned": frozenset(),
}


def check_transition(current: str, target: str) -> None:
    if target not in _TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(
            f"cannot move submission from {current} to {target}"
        )


def compute_grade(
    points: float, max_points: float, *, late_penalty: int = 0
) -> Grade:
    if max_points <= 0:
        raise SubmissionValidationError("max_points must be positive")
    if not 0 <= points <= max_points:
        raise SubmissionValidationError("points must be between 0 and max_points")

    raw = Decimal(str(points)) / Decimal(str(max_points)) * 100
    percentage = int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    percentage = max(0, percentage - late_penalty)
    return Grade(
        points=points,
        max_points=max_points,
        percentage=percentage,
        letter_grade=letter_grade(percentage),
    )


@dataclass
class GradingService:
    submissions: SubmissionRepo

    async def _load(self, submission_id: UUID) -> HomeworkSubmission:
        submission = await self.submissions.get_by_id(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(f"submission {submission_id} not found")
        return submission

    async def grade(
        self,
        submission_id: UUID,
        *,
        points: float,
        max_points: float,
        feedback: str | None,
        grader_id: str,
        now: datetime | None = None,
    ) -> HomeworkSubmission:
        submission = await self._load(submission_id)
        check_transition(submission.status, "graded")

        grade = compute_grade(
            points,
            max_points,
            late_penalty=submission.late_penalty if submission.is_late else 0,
        )
        updated = await self.submissions.update_grade(
            submission_id,
            status="graded",
            grade=grade,
            feedback=Feedback(
                text=feedback, graded_by=grader_id, graded_at=now or datetime.now(UTC)
            ),
        )
        if updated is None:
            raise SubmissionNotFoundError(f"submission {submission_id} not found")

        logger.info(
            "Submission %s graded %d%% (%s) by %s",
            submission_id,
            grade.percentage,
            grade.letter_grade,
            grader_id,
            extra={"submission_id": str(submission_id)},
        )
        return updated

    async def return_submission(self, submission_id: UUID) -> HomeworkSubmission:
        submission = await self._load(submission_id)
        check_transition(submission.status, "returned")
        updated = await self.submissions.update_status(submission_id, "returned")
        if updated is None:
            raise SubmissionNotFoundError(f"submission {submission_id} not found")
        logger.info("Submission %s returned", submission_id)
        return updated
