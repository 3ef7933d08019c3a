"""PostgreSQL implementation of StudentRepo."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import StudentRow
from lms.models.student import CompletedWeek, Student
from lms.models.week import WeekScope


class PgStudentRepo:
    """Satisfies the StudentRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, student_id: UUID) -> Student | None:
        row = await self._session.get(StudentRow, student_id)
        if row is None:
            return None
        return _row_to_student(row)

    async def add(self, student: Student) -> None:
        row = StudentRow(
            id=student.id,
            name=student.name,
            year=student.scope.year,
            curriculum=student.scope.curriculum,
            student_type=student.scope.student_type,
            guardian_phone=student.guardian_phone,
            current_week=student.current_week,
            completed_weeks=[_history_to_doc(cw) for cw in student.completed_weeks],
            is_active=student.is_active,
        )
        self._session.add(row)
        await self._session.flush()

    async def advance_current_week(
        self, student_id: UUID, completed: CompletedWeek
    ) -> Student | None:
        student = await self.get_by_id(student_id)
        if student is None or student.current_week != completed.week_number:
            return None
        history = student.completed_weeks
        if not student.has_completed(completed.week_number):
            history = (*history, completed)
        stmt = (
            update(StudentRow)
            .where(
                StudentRow.id == student_id,
                StudentRow.current_week == completed.week_number,
            )
            .values(
                current_week=completed.week_number + 1,
                completed_weeks=[_history_to_doc(cw) for cw in history],
            )
            .returning(StudentRow)
            .execution_options(synchronize_session=False)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_student(row)

    async def replace_progress_view(
        self,
        student_id: UUID,
        *,
        current_week: int,
        completed_weeks: tuple[CompletedWeek, ...],
    ) -> Student | None:
        stmt = (
            update(StudentRow)
            .where(StudentRow.id == student_id)
            .values(
                current_week=current_week,
                completed_weeks=[_history_to_doc(cw) for cw in completed_weeks],
            )
            .returning(StudentRow)
            .execution_options(synchronize_session=False)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_student(row)


def _history_to_doc(cw: CompletedWeek) -> dict:
    return {
        "week_number": cw.week_number,
        "completed_at": cw.completed_at.isoformat(),
        "score": cw.score,
    }


def _row_to_student(row: StudentRow) -> Student:
    return Student(
        id=row.id,
        name=row.name,
        scope=WeekScope(
            year=row.year, curriculum=row.curriculum, student_type=row.student_type
        ),
        guardian_phone=row.guardian_phone,
        current_week=row.current_week,
        completed_weeks=tuple(
            CompletedWeek(
                week_number=d["week_number"],
                completed_at=datetime.fromisoformat(d["completed_at"]),
                score=d["score"],
            )
            for d in row.completed_weeks or []
        ),
        is_active=row.is_active,
    )
