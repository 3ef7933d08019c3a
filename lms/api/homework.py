"""Homework submission upload (multipart)."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile, status
from pydantic import BaseModel

from lms.api.dependencies import (
    get_file_storage,
    get_repositories,
    get_task_queue,
    require_student,
)
from lms.api.errors import to_http_error
from lms.api.weeks import ProgressOut, ensure_week_access
from lms.core.config import SETTINGS
from lms.models.submission import HomeworkSubmission
from lms.repos.bundle import Repositories
from lms.services.errors import LmsError
from lms.services.homework_submission import HomeworkSubmissionPipeline, Upload
from lms.services.storage import FileStorage
from lms.services.task_queue import TaskQueue

router = APIRouter(prefix="/v1/weeks", tags=["homework"])


class SubmittedFileOut(BaseModel):
    file_name: str
    file_url: str
    file_type: str
    file_size: int


class GradeOut(BaseModel):
    points: float
    max_points: float
    percentage: int
    letter_grade: str


class SubmissionOut(BaseModel):
    id: str
    student_id: str
    week_id: str
    material_id: str
    title: str
    status: str
    is_late: bool
    late_penalty: int
    submitted_at: datetime
    files: list[SubmittedFileOut]
    grade: GradeOut | None = None
    feedback: str | None = None
    notification_status: str

    @staticmethod
    def from_submission(s: HomeworkSubmission) -> SubmissionOut:
        return SubmissionOut(
            id=str(s.id),
            student_id=str(s.student_id),
            week_id=str(s.week_id),
            material_id=s.material_id,
            title=s.title,
            status=s.status,
            is_late=s.is_late,
            late_penalty=s.late_penalty,
            submitted_at=s.submitted_at,
            files=[
                SubmittedFileOut(
                    file_name=f.file_name,
                    file_url=f.file_url,
                    file_type=f.file_type,
                    file_size=f.file_size,
                )
                for f in s.files
            ],
            grade=(
                GradeOut(
                    points=s.grade.points,
                    max_points=s.grade.max_points,
                    percentage=s.grade.percentage,
                    letter_grade=s.grade.letter_grade,
                )
                if s.grade
                else None
            ),
            feedback=s.feedback.text if s.feedback else None,
            notification_status=s.notification.status,
        )


class SubmissionCreatedOut(BaseModel):
    submission: SubmissionOut
    progress: ProgressOut


@router.post(
    "/{week_id}/homework/{material_id}/submissions",
    response_model=SubmissionCreatedOut,
    status_code=status.HTTP_201_CREATED,
)
async def submit_homework(
    week_id: UUID,
    material_id: str,
    background_tasks: BackgroundTasks,
    student_id: Annotated[UUID, Depends(require_student)],
    repos: Annotated[Repositories, Depends(get_repositories)],
    storage: Annotated[FileStorage, Depends(get_file_storage)],
    queue: Annotated[TaskQueue, Depends(get_task_queue)],
    file: Annotated[UploadFile | None, File()] = None,
    title: Annotated[str | None, Form()] = None,
    description: Annotated[str, Form()] = "",
) -> SubmissionCreatedOut:
    upload = None
    if file is not None:
        upload = Upload(
            file_name=file.filename or "upload",
            content_type=file.content_type or "application/octet-stream",
            data=await file.read(),
        )

    pipeline = HomeworkSubmissionPipeline(
        repos,
        storage=storage,
        queue=queue,
        max_upload_bytes=SETTINGS.max_upload_bytes,
        defer=background_tasks.add_task,
    )
    try:
        await ensure_week_access(pipeline.progress, student_id, week_id)
        result = await pipeline.submit(
            student_id=student_id,
            week_id=week_id,
            material_id=material_id,
            upload=upload,
            title=title,
            description=description,
        )
    except LmsError as e:
        raise to_http_error(e) from None

    return SubmissionCreatedOut(
        submission=SubmissionOut.from_submission(result.submission),
        progress=ProgressOut.from_view(result.progress),
    )
