"""PostgreSQL implementation of SubmissionRepo."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import HomeworkSubmissionRow
from lms.models.submission import (
    Feedback,
    Grade,
    HomeworkSubmission,
    NotificationState,
    SubmittedFile,
)
from lms.services.errors import DuplicateKeyError


class PgSubmissionRepo:
    """Satisfies the SubmissionRepo Protocol using PostgreSQL.

    UNIQUE(student_id, week_id, material_id) backs the one-submission
    rule; a losing concurrent insert surfaces as DuplicateKeyError.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, submission_id: UUID) -> HomeworkSubmission | None:
        row = await self._session.get(HomeworkSubmissionRow, submission_id)
        if row is None:
            return None
        return _row_to_submission(row)

    async def find(
        self, student_id: UUID, week_id: UUID, material_id: str
    ) -> HomeworkSubmission | None:
        stmt = select(HomeworkSubmissionRow).where(
            HomeworkSubmissionRow.student_id == student_id,
            HomeworkSubmissionRow.week_id == week_id,
            HomeworkSubmissionRow.material_id == material_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_submission(row)

    async def list_for_student_week(
        self, student_id: UUID, week_id: UUID
    ) -> list[HomeworkSubmission]:
        stmt = select(HomeworkSubmissionRow).where(
            HomeworkSubmissionRow.student_id == student_id,
            HomeworkSubmissionRow.week_id == week_id,
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_submission(r) for r in rows]

    async def add(self, submission: HomeworkSubmission) -> None:
        row = HomeworkSubmissionRow(
            id=submission.id,
            student_id=submission.student_id,
            week_id=submission.week_id,
            material_id=submission.material_id,
            title=submission.title,
            description=submission.description,
            files=[_file_to_doc(f) for f in submission.files],
            submitted_at=submission.submitted_at,
            status=submission.status,
            is_late=submission.is_late,
            late_penalty=submission.late_penalty,
            notification_status=submission.notification.status,
        )
        try:
            async with self._session.begin_nested():
                self._session.add(row)
                await self._session.flush()
        except IntegrityError:
            raise DuplicateKeyError(
                "submission already exists for this material"
            ) from None

    async def update_grade(
        self,
        submission_id: UUID,
        *,
        status: str,
        grade: Grade | None,
        feedback: Feedback | None,
    ) -> HomeworkSubmission | None:
        return await self._update(
            submission_id,
            status=status,
            grade=_grade_to_doc(grade),
            feedback=_feedback_to_doc(feedback),
        )

    async def update_status(
        self, submission_id: UUID, status: str
    ) -> HomeworkSubmission | None:
        return await self._update(submission_id, status=status)

    async def set_notification(
        self, submission_id: UUID, notification: NotificationState
    ) -> HomeworkSubmission | None:
        return await self._update(
            submission_id,
            notification_status=notification.status,
            notification_updated_at=notification.updated_at,
            notification_message_id=notification.provider_message_id,
            notification_error=notification.error,
        )

    async def _update(self, submission_id: UUID, **values) -> HomeworkSubmission | None:
        stmt = (
            update(HomeworkSubmissionRow)
            .where(HomeworkSubmissionRow.id == submission_id)
            .values(**values)
            .returning(HomeworkSubmissionRow)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_submission(row)


def _file_to_doc(f: SubmittedFile) -> dict:
    return {
        "file_name": f.file_name,
        "file_url": f.file_url,
        "file_id": f.file_id,
        "file_type": f.file_type,
        "file_size": f.file_size,
        "uploaded_at": f.uploaded_at.isoformat(),
    }


def _grade_to_doc(grade: Grade | None) -> dict | None:
    if grade is None:
        return None
    return {
        "points": grade.points,
        "max_points": grade.max_points,
        "percentage": grade.percentage,
        "letter_grade": grade.letter_grade,
    }


def _feedback_to_doc(feedback: Feedback | None) -> dict | None:
    if feedback is None:
        return None
    return {
        "text": feedback.text,
        "graded_by": feedback.graded_by,
        "graded_at": feedback.graded_at.isoformat(),
    }


def _row_to_submission(row: HomeworkSubmissionRow) -> HomeworkSubmission:
    files = tuple(
        SubmittedFile(
            file_name=d["file_name"],
            file_url=d["file_url"],
            file_id=d["file_id"],
            file_type=d["file_type"],
            file_size=d["file_size"],
            uploaded_at=datetime.fromisoformat(d["uploaded_at"]),
        )
        for d in row.files or []
    )
    grade = Grade(**row.grade) if row.grade else None
    feedback = None
    if row.feedback:
        feedback = Feedback(
            text=row.feedback.get("text"),
            graded_by=row.feedback["graded_by"],
            graded_at=datetime.fromisoformat(row.feedback["graded_at"]),
        )
    return HomeworkSubmission(
        id=row.id,
        student_id=row.student_id,
        week_id=row.week_id,
        material_id=row.material_id,
        title=row.title,
        description=row.description or "",
        files=files,
        submitted_at=row.submitted_at,
        status=row.status,
        is_late=row.is_late,
        late_penalty=row.late_penalty,
        grade=grade,
        feedback=feedback,
        notification=NotificationState(
            status=row.notification_status,
            updated_at=row.notification_updated_at,
            provider_message_id=row.notification_message_id,
            error=row.notification_error,
        ),
    )
