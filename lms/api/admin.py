from __future__ import annotations

import logging
from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from pydantic import BaseModel, Field

from lms.api.dependencies import get_repositories, get_task_queue, require_role
from lms.api.errors import to_http_error
from lms.api.homework import SubmissionOut
from lms.models.principal import Principal
from lms.models.student import Student
from lms.models.week import MATERIAL_TYPES, UnlockConditions, WeekScope
from lms.models.week_content import WeekContent
from lms.repos.bundle import Repositories
from lms.services import week_service
from lms.services.errors import LmsError
from lms.services.grading_service import GradingService
from lms.services.notifications import resend_notification
from lms.services.progress_service import ProgressService
from lms.services.repair import recompute_student_pointer
from lms.services.student_service import register_student
from lms.services.task_queue import TaskQueue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/admin", tags=["admin"])

AdminPrincipal = Annotated[Principal, Depends(require_role("admin"))]
Repos = Annotated[Repositories, Depends(get_repositories)]


# ---------------------------------------------------------------------------
# Students
# ---------------------------------------------------------------------------


class StudentIn(BaseModel):
    name: str = Field(min_length=1)
    year: str
    curriculum: str
    student_type: str
    guardian_phone: str | None = None


class StudentOut(BaseModel):
    id: str
    name: str
    current_week: int
    completed_weeks: list[int]


class UnlockIn(BaseModel):
    reason: str = "Unlocked by admin"


class UnlockOut(BaseModel):
    student_id: str
    week_id: str
    status: str
    is_unlocked: bool
    unlocked_by: str | None
    unlock_reason: str | None


class RepairOut(BaseModel):
    student: StudentOut
    changed: bool


def _student_out(student: Student) -> StudentOut:
    return StudentOut(
        id=str(student.id),
        name=student.name,
        current_week=student.current_week,
        completed_weeks=[cw.week_number for cw in student.completed_weeks],
    )


@router.post(
    "/students", response_model=StudentOut, status_code=status.HTTP_201_CREATED
)
async def admin_register_student(
    body: StudentIn, principal: AdminPrincipal, repos: Repos
) -> StudentOut:
    try:
        student = await register_student(
            repos,
            name=body.name,
            year=body.year,
            curriculum=body.curriculum,
            student_type=body.student_type,
            guardian_phone=body.guardian_phone,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    logger.info("Student %s registered by admin=%s", student.id, principal.user_id)
    return _student_out(student)


@router.post(
    "/students/{student_id}/weeks/{week_id}/unlock", response_model=UnlockOut
)
async def admin_unlock_week(
    student_id: UUID,
    week_id: UUID,
    principal: AdminPrincipal,
    repos: Repos,
    body: UnlockIn | None = None,
) -> UnlockOut:
    reason = body.reason if body else UnlockIn().reason
    try:
        progress = await ProgressService(repos).admin_unlock(
            student_id, week_id, reason=reason
        )
    except LmsError as e:
        raise to_http_error(e) from None
    logger.info(
        "Admin=%s unlocked week=%s for student=%s",
        principal.user_id,
        week_id,
        student_id,
    )
    return UnlockOut(
        student_id=str(progress.student_id),
        week_id=str(progress.week_id),
        status=progress.status,
        is_unlocked=progress.is_unlocked,
        unlocked_by=progress.access_control.unlocked_by,
        unlock_reason=progress.access_control.unlock_reason,
    )


@router.post("/students/{student_id}/repair", response_model=RepairOut)
async def admin_repair_student(
    student_id: UUID, principal: AdminPrincipal, repos: Repos
) -> RepairOut:
    try:
        result = await recompute_student_pointer(student_id, repos)
    except LmsError as e:
        raise to_http_error(e) from None
    return RepairOut(student=_student_out(result.student), changed=result.changed)


# ---------------------------------------------------------------------------
# Weeks
# ---------------------------------------------------------------------------


class WeekIn(BaseModel):
    week_number: int = Field(ge=1)
    title: str = Field(min_length=1)
    year: str
    curriculum: str
    student_type: str
    description: str = ""
    depends_on_previous_week: bool = True
    manual_unlock_only: bool = False


class WeekOut(BaseModel):
    id: str
    week_number: int
    title: str


class ContentIn(BaseModel):
    type: str
    title: str = Field(min_length=1)
    description: str | None = None
    file_url: str | None = None
    file_name: str | None = None
    order: int = 0
    due_date_time: datetime | None = None
    allow_late_submission: bool = False
    late_penalty: int = Field(default=0, ge=0, le=100)


class ContentOut(BaseModel):
    id: str
    week_id: str
    type: str
    title: str


class WeekDeletedOut(BaseModel):
    week_id: str
    contents_deleted: int
    progress_deleted: int


@router.post("/weeks", response_model=WeekOut, status_code=status.HTTP_201_CREATED)
async def admin_create_week(
    body: WeekIn, principal: AdminPrincipal, repos: Repos
) -> WeekOut:
    try:
        week = await week_service.create_week(
            repos,
            week_number=body.week_number,
            title=body.title,
            scope=WeekScope(
                year=body.year,
                curriculum=body.curriculum,
                student_type=body.student_type,
            ),
            description=body.description,
            unlock_conditions=UnlockConditions(
                depends_on_previous_week=body.depends_on_previous_week,
                manual_unlock_only=body.manual_unlock_only,
            ),
        )
    except LmsError as e:
        raise to_http_error(e) from None
    return WeekOut(id=str(week.id), week_number=week.week_number, title=week.title)


@router.post(
    "/weeks/{week_id}/contents",
    response_model=ContentOut,
    status_code=status.HTTP_201_CREATED,
)
async def admin_add_content(
    week_id: UUID, body: ContentIn, principal: AdminPrincipal, repos: Repos
) -> ContentOut:
    if body.type not in MATERIAL_TYPES:
        raise HTTPException(
            status_code=400, detail=f"unknown material type {body.type!r}"
        )
    try:
        content = WeekContent.new(
            week_id=week_id,
            type=body.type,
            title=body.title,
            description=body.description,
            file_url=body.file_url,
            file_name=body.file_name,
            order=body.order,
            due_date_time=body.due_date_time,
            allow_late_submission=body.allow_late_submission,
            late_penalty=body.late_penalty,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    try:
        await week_service.add_content(repos, content)
    except LmsError as e:
        raise to_http_error(e) from None
    return ContentOut(
        id=str(content.id), week_id=str(week_id), type=content.type, title=content.title
    )


@router.delete("/weeks/{week_id}", response_model=WeekDeletedOut)
async def admin_delete_week(
    week_id: UUID, principal: AdminPrincipal, repos: Repos
) -> WeekDeletedOut:
    try:
        deletion = await week_service.delete_week(repos, week_id)
    except LmsError as e:
        raise to_http_error(e) from None
    logger.warning("Week %s deleted by admin=%s", week_id, principal.user_id)
    return WeekDeletedOut(
        week_id=str(deletion.week_id),
        contents_deleted=deletion.contents_deleted,
        progress_deleted=deletion.progress_deleted,
    )


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------


class GradeIn(BaseModel):
    points: float = Field(ge=0)
    max_points: float = Field(gt=0)
    feedback: str | None = None


class NotificationOut(BaseModel):
    submission_id: str
    status: str


@router.post("/submissions/{submission_id}/grade", response_model=SubmissionOut)
async def admin_grade_submission(
    submission_id: UUID, body: GradeIn, principal: AdminPrincipal, repos: Repos
) -> SubmissionOut:
    try:
        submission = await GradingService(repos.submissions).grade(
            submission_id,
            points=body.points,
            max_points=body.max_points,
            feedback=body.feedback,
            grader_id=principal.user_id,
        )
    except LmsError as e:
        raise to_http_error(e) from None
    return SubmissionOut.from_submission(submission)


@router.post("/submissions/{submission_id}/return", response_model=SubmissionOut)
async def admin_return_submission(
    submission_id: UUID, principal: AdminPrincipal, repos: Repos
) -> SubmissionOut:
    try:
        submission = await GradingService(repos.submissions).return_submission(
            submission_id
        )
    except LmsError as e:
        raise to_http_error(e) from None
    return SubmissionOut.from_submission(submission)


@router.post(
    "/submissions/{submission_id}/notifications/resend",
    response_model=NotificationOut,
    status_code=status.HTTP_202_ACCEPTED,
)
async def admin_resend_notification(
    submission_id: UUID,
    background_tasks: BackgroundTasks,
    principal: AdminPrincipal,
    repos: Repos,
    queue: Annotated[TaskQueue, Depends(get_task_queue)],
) -> NotificationOut:
    try:
        state = await resend_notification(
            submission_id, repos, queue, defer=background_tasks.add_task
        )
    except LmsError as e:
        raise to_http_error(e) from None
    logger.info(
        "Notification resend for submission=%s by admin=%s",
        submission_id,
        principal.user_id,
    )
    return NotificationOut(submission_id=str(submission_id), status=state.status)
