"""Student week endpoints: materials, progress, and marking a material viewed."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from lms.api.dependencies import get_repositories, require_student
from lms.api.errors import to_http_error
from lms.models.material import Material
from lms.repos.bundle import Repositories
from lms.services.access import can_access
from lms.services.errors import LmsError
from lms.services.progress_service import ProgressService, ProgressView

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/weeks", tags=["weeks"])


class MaterialOut(BaseModel):
    id: str
    type: str
    title: str
    source: str
    original_material_id: str | None = None
    description: str | None = None
    file_url: str | None = None
    file_name: str | None = None
    is_required: bool
    estimated_time: int
    due_date_time: datetime | None = None
    allow_late_submission: bool
    late_penalty: int
    max_score: int

    @staticmethod
    def from_material(m: Material) -> MaterialOut:
        return MaterialOut(
            id=m.id,
            type=m.type,
            title=m.title,
            source=m.source,
            original_material_id=m.original_material_id,
            description=m.description,
            file_url=m.file_url,
            file_name=m.file_name,
            is_required=m.is_required,
            estimated_time=m.estimated_time,
            due_date_time=m.due_date_time,
            allow_late_submission=m.allow_late_submission,
            late_penalty=m.late_penalty,
            max_score=m.max_score,
        )


class ProgressOut(BaseModel):
    student_id: str
    week_id: str
    status: str
    score: int
    completed_materials: list[str]
    completed_count: int
    total_count: int
    is_unlocked: bool
    unlocked_by: str | None = None
    unlock_reason: str | None = None
    completed_at: datetime | None = None

    @staticmethod
    def from_view(view: ProgressView) -> ProgressOut:
        p = view.progress
        return ProgressOut(
            student_id=str(p.student_id),
            week_id=str(p.week_id),
            status=p.status,
            score=p.score,
            completed_materials=sorted(p.completed_materials),
            completed_count=view.evaluation.completed_count,
            total_count=view.evaluation.total_count,
            is_unlocked=p.is_unlocked,
            unlocked_by=p.access_control.unlocked_by,
            unlock_reason=p.access_control.unlock_reason,
            completed_at=p.completed_at,
        )


async def ensure_week_access(
    service: ProgressService, student_id: UUID, week_id: UUID
) -> None:
    """403 unless the student has reached this week."""
    student = await service.load_student(student_id)
    week = await service.load_week(week_id)
    progress = await service.ledger.get(student_id, week_id)
    if not can_access(student, week, progress):
        logger.info(
            "Week %d locked for student=%s",
            week.week_number,
            student_id,
            extra={"student_id": str(student_id), "week_id": str(week_id)},
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This week is locked",
        )


@router.get("/{week_id}/materials", response_model=list[MaterialOut])
async def list_week_materials(
    week_id: UUID,
    student_id: Annotated[UUID, Depends(require_student)],
    repos: Annotated[Repositories, Depends(get_repositories)],
) -> list[MaterialOut]:
    service = ProgressService(repos)
    try:
        await ensure_week_access(service, student_id, week_id)
        materials = await service.materials(week_id)
    except LmsError as e:
        raise to_http_error(e) from None
    return [MaterialOut.from_material(m) for m in materials]


@router.get("/{week_id}/progress", response_model=ProgressOut)
async def get_week_progress(
    week_id: UUID,
    student_id: Annotated[UUID, Depends(require_student)],
    repos: Annotated[Repositories, Depends(get_repositories)],
) -> ProgressOut:
    try:
        view = await ProgressService(repos).week_progress(student_id, week_id)
    except LmsError as e:
        raise to_http_error(e) from None
    return ProgressOut.from_view(view)


@router.post("/{week_id}/materials/{material_id}/viewed", response_model=ProgressOut)
async def mark_material_viewed(
    week_id: UUID,
    material_id: str,
    student_id: Annotated[UUID, Depends(require_student)],
    repos: Annotated[Repositories, Depends(get_repositories)],
) -> ProgressOut:
    service = ProgressService(repos)
    try:
        await ensure_week_access(service, student_id, week_id)
        view = await service.record_material_viewed(student_id, week_id, material_id)
    except LmsError as e:
        raise to_http_error(e) from None
    return ProgressOut.from_view(view)
