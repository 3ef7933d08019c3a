"""Student-facing progress operations.

Ties the resolver, evaluator, ledger and unlock propagator together for
the two write events that move progress: marking a material viewed and
submitting homework (see homework_submission.py, which calls refresh).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from lms.models.material import Material
from lms.models.progress import StudentProgress
from lms.models.student import Student
from lms.models.week import Week
from lms.repos.bundle import Repositories
from lms.services.completion_evaluator import Evaluation, evaluate
from lms.services.errors import (
    MaterialNotFoundError,
    StudentNotFoundError,
    SubmissionValidationError,
    WeekNotFoundError,
)
from lms.services.material_resolver import find_material, resolve_materials
from lms.services.progress_ledger import ProgressLedger
from lms.services.unlock_propagator import UnlockPropagator

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProgressView:
    progress: StudentProgress
    evaluation: Evaluation

    @property
    def week_completed(self) -> bool:
        return self.progress.is_completed


class ProgressService:
    def __init__(self, repos: Repositories) -> None:
        self._repos = repos
        self.ledger = ProgressLedger(repos.progress)
        self.propagator = UnlockPropagator(repos, self.ledger)

    async def load_student(self, student_id: UUID) -> Student:
        student = await self._repos.students.get_by_id(student_id)
        if student is None:
            raise StudentNotFoundError(f"student {student_id} not found")
        return student

    async def load_week(self, week_id: UUID) -> Week:
        week = await self._repos.weeks.get_by_id(week_id)
        if week is None:
            raise WeekNotFoundError(f"week {week_id} not found")
        return week

    async def materials(self, week_id: UUID) -> list[Material]:
        return await resolve_materials(
            week_id, weeks=self._repos.weeks, contents=self._repos.contents
        )

    async def week_progress(self, student_id: UUID, week_id: UUID) -> ProgressView:
        """Read path: lazily creates the record, never changes score."""
        await self.load_week(week_id)
        progress = await self.ledger.get_or_create(student_id, week_id)
        return ProgressView(
            progress=progress,
            evaluation=await evaluate(student_id, week_id, self._repos),
        )

    async def refresh(self, student: Student, week: Week) -> ProgressView:
        """Re-evaluate, write back, and propagate a completion."""
        evaluation = await evaluate(student.id, week.id, self._repos)
        progress = await self.ledger.apply_evaluation(student.id, week.id, evaluation)

        if progress.is_completed:
            try:
                await self.propagator.on_week_completed(
                    student, week, progress.score
                )
            except Exception:
                # The completion itself is persisted; the pointer/unlock
                # is re-attempted on the next write or by the repair pass.
                logger.exception(
                    "Unlock propagation failed student=%s week=%s",
                    student.id,
                    week.id,
                )
        return ProgressView(progress=progress, evaluation=evaluation)

    async def record_material_viewed(
        self, student_id: UUID, week_id: UUID, material_id: str
    ) -> ProgressView:
        student = await self.load_student(student_id)
        week = await self.load_week(week_id)

        material = find_material(await self.materials(week_id), material_id)
        if material is None:
            raise MaterialNotFoundError(f"material {material_id} not found")
        if material.is_homework:
            raise SubmissionValidationError(
                "Homework must be submitted to be marked as completed"
            )

        stored_id = material.original_material_id or material.id
        added = await self.ledger.add_completed_material(
            student_id, week_id, stored_id
        )
        if added:
            logger.info(
                "Material %s viewed by student=%s",
                stored_id,
                student_id,
                extra={
                    "student_id": str(student_id),
                    "week_id": str(week_id),
                    "material_id": stored_id,
                },
            )
        return await self.refresh(student, week)

    async def admin_unlock(
        self, student_id: UUID, week_id: UUID, *, reason: str
    ) -> StudentProgress:
        await self.load_student(student_id)
        await self.load_week(week_id)
        return await self.ledger.apply_unlock(
            student_id, week_id, reason=reason, unlocked_by="admin"
        )
