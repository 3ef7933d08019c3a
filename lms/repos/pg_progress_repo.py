"""PostgreSQL implementation of ProgressRepo.

Every mutation is a single conditional UPDATE so two requests racing on
the same (student, week) cannot both win: the WHERE clause encodes the
precondition (material absent, record not completed, gate still closed)
and rowcount tells the caller whether its write took effect.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import StudentProgressRow
from lms.models.progress import (
    AccessControl,
    ProgressStatus,
    StudentProgress,
    derive_status,
)
from lms.services.errors import DuplicateKeyError


class PgProgressRepo:
    """Satisfies the ProgressRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, student_id: UUID, week_id: UUID) -> StudentProgress | None:
        stmt = select(StudentProgressRow).where(
            StudentProgressRow.student_id == student_id,
            StudentProgressRow.week_id == week_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_progress(row)

    async def list_for_student(self, student_id: UUID) -> list[StudentProgress]:
        stmt = select(StudentProgressRow).where(
            StudentProgressRow.student_id == student_id
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_progress(r) for r in rows]

    async def add(self, progress: StudentProgress) -> None:
        access = progress.access_control
        row = StudentProgressRow(
            id=progress.id,
            student_id=progress.student_id,
            week_id=progress.week_id,
            status=progress.status,
            score=progress.score,
            completed_materials=sorted(progress.completed_materials),
            is_unlocked=access.is_unlocked,
            unlocked_at=access.unlocked_at,
            unlocked_by=access.unlocked_by,
            unlock_reason=access.unlock_reason,
            completed_at=progress.completed_at,
            created_at=progress.created_at,
            updated_at=progress.updated_at,
        )
        try:
            async with self._session.begin_nested():
                self._session.add(row)
                await self._session.flush()
        except IntegrityError:
            raise DuplicateKeyError(
                "progress already exists for this student/week"
            ) from None

    async def add_completed_material(
        self, student_id: UUID, week_id: UUID, material_id: str, now: datetime
    ) -> bool:
        stmt = (
            update(StudentProgressRow)
            .where(
                StudentProgressRow.student_id == student_id,
                StudentProgressRow.week_id == week_id,
                ~StudentProgressRow.completed_materials.any(material_id),
            )
            .values(
                completed_materials=func.array_append(
                    StudentProgressRow.completed_materials, material_id
                ),
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def record_score(
        self,
        student_id: UUID,
        week_id: UUID,
        *,
        score: int,
        status: ProgressStatus,
        now: datetime,
    ) -> StudentProgress | None:
        values: dict[str, object] = {
            "score": score,
            "status": status,
            "updated_at": now,
        }
        if status == "completed":
            values["completed_at"] = now
        stmt = (
            update(StudentProgressRow)
            .where(
                StudentProgressRow.student_id == student_id,
                StudentProgressRow.week_id == week_id,
                StudentProgressRow.status != "completed",
            )
            .values(**values)
            .returning(StudentProgressRow)
            .execution_options(synchronize_session=False)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_progress(row)

    async def unlock(
        self, student_id: UUID, week_id: UUID, access: AccessControl, now: datetime
    ) -> StudentProgress | None:
        current = await self.get(student_id, week_id)
        if current is None or current.is_unlocked:
            return None
        status = derive_status(
            current.score, is_unlocked=True, was_completed=current.is_completed
        )
        stmt = (
            update(StudentProgressRow)
            .where(
                StudentProgressRow.student_id == student_id,
                StudentProgressRow.week_id == week_id,
                StudentProgressRow.is_unlocked.is_(False),
            )
            .values(
                is_unlocked=True,
                unlocked_at=access.unlocked_at,
                unlocked_by=access.unlocked_by,
                unlock_reason=access.unlock_reason,
                status=status,
                updated_at=now,
            )
            .returning(StudentProgressRow)
            .execution_options(synchronize_session=False)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None  # concurrent unlock won the race
        return _row_to_progress(row)

    async def delete_for_week(self, week_id: UUID) -> int:
        result = await self._session.execute(
            delete(StudentProgressRow).where(StudentProgressRow.week_id == week_id)
        )
        return result.rowcount


def _row_to_progress(row: StudentProgressRow) -> StudentProgress:
    return StudentProgress(
        id=row.id,
        student_id=row.student_id,
        week_id=row.week_id,
        status=row.status,  # type: ignore[arg-type]
        score=row.score,
        completed_materials=frozenset(row.completed_materials or ()),
        access_control=AccessControl(
            is_unlocked=row.is_unlocked,
            unlocked_at=row.unlocked_at,
            unlocked_by=row.unlocked_by,  # type: ignore[arg-type]
            unlock_reason=row.unlock_reason,
        ),
        completed_at=row.completed_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
