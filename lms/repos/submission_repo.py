from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from lms.models.submission import Feedback, Grade, HomeworkSubmission, NotificationState
from lms.services.errors import DuplicateKeyError


class SubmissionRepo(Protocol):
    async def get_by_id(self, submission_id: UUID) -> HomeworkSubmission | None: ...
    async def find(
        self, student_id: UUID, week_id: UUID, material_id: str
    ) -> HomeworkSubmission | None: ...
    async def list_for_student_week(
        self, student_id: UUID, week_id: UUID
    ) -> list[HomeworkSubmission]: ...
    async def add(self, submission: HomeworkSubmission) -> None: ...
    async def update_grade(
        self,
        submission_id: UUID,
        *,
        status: str,
        grade: Grade | None,
        feedback: Feedback | None,
    ) -> HomeworkSubmission | None: ...
    async def update_status(
        self, submission_id: UUID, status: str
    ) -> HomeworkSubmission | None: ...
    async def set_notification(
        self, submission_id: UUID, notification: NotificationState
    ) -> HomeworkSubmission | None: ...


class InMemorySubmissionRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, HomeworkSubmission] = {}
        # unique (student, week, material)
        self._by_key: dict[tuple[UUID, UUID, str], UUID] = {}

    async def get_by_id(self, submission_id: UUID) -> HomeworkSubmission | None:
        return self._by_id.get(submission_id)

    async def find(
        self, student_id: UUID, week_id: UUID, material_id: str
    ) -> HomeworkSubmission | None:
        sid = self._by_key.get((student_id, week_id, material_id))
        return self._by_id.get(sid) if sid is not None else None

    async def list_for_student_week(
        self, student_id: UUID, week_id: UUID
    ) -> list[HomeworkSubmission]:
        return [
            s
            for s in self._by_id.values()
            if s.student_id == student_id and s.week_id == week_id
        ]

    async def add(self, submission: HomeworkSubmission) -> None:
        key = (submission.student_id, submission.week_id, submission.material_id)
        if key in self._by_key:
            raise DuplicateKeyError("submission already exists for this material")
        self._by_key[key] = submission.id
        self._by_id[submission.id] = submission

    async def update_grade(
        self,
        submission_id: UUID,
        *,
        status: str,
        grade: Grade | None,
        feedback: Feedback | None,
    ) -> HomeworkSubmission | None:
        s = self._by_id.get(submission_id)
        if s is None:
            return None
        updated = replace(s, status=status, grade=grade, feedback=feedback)
        self._by_id[submission_id] = updated
        return updated

    async def update_status(
        self, submission_id: UUID, status: str
    ) -> HomeworkSubmission | None:
        s = self._by_id.get(submission_id)
        if s is None:
            return None
        updated = replace(s, status=status)
        self._by_id[submission_id] = updated
        return updated

    async def set_notification(
        self, submission_id: UUID, notification: NotificationState
    ) -> HomeworkSubmission | None:
        s = self._by_id.get(submission_id)
        if s is None:
            return None
        updated = replace(s, notification=notification)
        self._by_id[submission_id] = updated
        return updated
