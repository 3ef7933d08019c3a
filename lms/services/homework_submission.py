"""Homework submission pipeline.

Preconditions are checked in a fixed order, each failing with its own
error and no side effects:

  1. a non-empty file within the upload size limit;
  2. the student and week exist;
  3. the material resolves and is homework;
  4. no earlier submission for (student, week, material);
  5. the deadline has not passed, or late submission is allowed.

Only then is the file uploaded and the submission persisted.  Progress
is refreshed in the same request so the student sees the new score
immediately; the guardian notification is queued and never awaited.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from lms.core.metrics import HOMEWORK_SUBMISSIONS
from lms.models.submission import HomeworkSubmission, SubmittedFile
from lms.repos.bundle import Repositories
from lms.services.errors import (
    DeadlinePassedError,
    DuplicateKeyError,
    DuplicateSubmissionError,
    MaterialNotFoundError,
    StorageError,
    SubmissionValidationError,
)
from lms.services.material_resolver import find_material
from lms.services.notifications import request_submission_notification
from lms.services.progress_service import ProgressService, ProgressView
from lms.services.storage import FileStorage, classify_file_type
from lms.services.task_queue import TaskQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Upload:
    file_name: str
    content_type: str
    data: bytes


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    submission: HomeworkSubmission
    progress: ProgressView


class HomeworkSubmissionPipeline:
    """Accepts one homework upload per (student, week, material).

    ``defer`` schedules the notification request after the caller's unit
    of work commits (the API passes ``BackgroundTasks.add_task``).  When
    it is None the request is enqueued inline.
    """

    def __init__(
        self,
        repos: Repositories,
        *,
        storage: FileStorage,
        queue: TaskQueue,
        max_upload_bytes: int,
        defer: Callable[..., None] | None = None,
    ) -> None:
        self._repos = repos
        self._storage = storage
        self._queue = queue
        self._max_upload_bytes = max_upload_bytes
        self._defer = defer
        self.progress = ProgressService(repos)

    def _validate_upload(self, upload: Upload | None) -> Upload:
        if upload is None or not upload.data:
            raise SubmissionValidationError("Please upload a file")
        if len(upload.data) > self._max_upload_bytes:
            limit_mb = self._max_upload_bytes // (1024 * 1024)
            raise SubmissionValidationError(
                f"File size must be less than {limit_mb}MB"
            )
        return upload

    async def submit(
        self,
        *,
        student_id: UUID,
        week_id: UUID,
        material_id: str,
        upload: Upload | None,
        title: str | None = None,
        description: str = "",
        now: datetime | None = None,
    ) -> SubmissionResult:
        log_extra = {
            "student_id": str(student_id),
            "week_id": str(week_id),
            "material_id": material_id,
        }
        try:
            upload = self._validate_upload(upload)
        except SubmissionValidationError:
            HOMEWORK_SUBMISSIONS.labels(outcome="invalid").inc()
            raise

        student = await self.progress.load_student(student_id)
        week = await self.progress.load_week(week_id)

        material = find_material(await self.progress.materials(week_id), material_id)
        if material is None or not material.is_homework:
            HOMEWORK_SUBMISSIONS.labels(outcome="invalid").inc()
            raise MaterialNotFoundError("Homework assignment not found")

        stored_id = material.original_material_id or material.id
        if await self._repos.submissions.find(student_id, week_id, stored_id):
            HOMEWORK_SUBMISSIONS.labels(outcome="duplicate").inc()
            raise DuplicateSubmissionError(
                "You have already submitted this homework"
            )

        now = now or datetime.now(UTC)
        is_late = material.due_date_time is not None and now > material.due_date_time
        if is_late and not material.allow_late_submission:
            HOMEWORK_SUBMISSIONS.labels(outcome="deadline_passed").inc()
            raise DeadlinePassedError(
                "Submission deadline has passed and late submissions are not allowed"
            )

        try:
            stored = await self._storage.upload(
                upload.data,
                file_name=upload.file_name,
                content_type=upload.content_type,
                folder=f"homework/{student_id}/{week_id}",
            )
        except StorageError:
            HOMEWORK_SUBMISSIONS.labels(outcome="storage_failed").inc()
            logger.exception("Homework upload failed", extra=log_extra)
            raise

        submission = HomeworkSubmission.new(
            student_id=student_id,
            week_id=week_id,
            material_id=stored_id,
            title=title or material.title,
            files=(
                SubmittedFile(
                    file_name=upload.file_name,
                    file_url=stored.url,
                    file_id=stored.id,
                    file_type=classify_file_type(upload.content_type),
                    file_size=len(upload.data),
                    uploaded_at=now,
                ),
            ),
            submitted_at=now,
            is_late=is_late,
            late_penalty=material.late_penalty if is_late else 0,
            description=description,
        )
        try:
            await self._repos.submissions.add(submission)
        except DuplicateKeyError:
            # Lost a race with a concurrent submit; drop our orphan upload.
            HOMEWORK_SUBMISSIONS.labels(outcome="duplicate").inc()
            try:
                await self._storage.delete(stored.id)
            except StorageError:
                logger.warning("Could not delete orphan upload %s", stored.id)
            raise DuplicateSubmissionError(
                "You have already submitted this homework"
            ) from None

        HOMEWORK_SUBMISSIONS.labels(outcome="late" if is_late else "accepted").inc()
        logger.info(
            "Homework submitted submission=%s late=%s",
            submission.id,
            is_late,
            extra={**log_extra, "submission_id": str(submission.id)},
        )

        view = await self.progress.refresh(student, week)

        if self._defer is not None:
            self._defer(request_submission_notification, submission.id, self._queue)
        else:
            await request_submission_notification(submission.id, self._queue)

        return SubmissionResult(submission=submission, progress=view)
