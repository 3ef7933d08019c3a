from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from lms.models.student import CompletedWeek, Student


class StudentRepo(Protocol):
    async def get_by_id(self, student_id: UUID) -> Student | None: ...
    async def add(self, student: Student) -> None: ...
    async def advance_current_week(
        self, student_id: UUID, completed: CompletedWeek
    ) -> Student | None: ...
    async def replace_progress_view(
        self,
        student_id: UUID,
        *,
        current_week: int,
        completed_weeks: tuple[CompletedWeek, ...],
    ) -> Student | None: ...


class InMemoryStudentRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Student] = {}

    async def get_by_id(self, student_id: UUID) -> Student | None:
        return self._by_id.get(student_id)

    async def add(self, student: Student) -> None:
        if student.id in self._by_id:
            raise ValueError("student already exists")
        self._by_id[student.id] = student

    async def advance_current_week(
        self, student_id: UUID, completed: CompletedWeek
    ) -> Student | None:
        """Move current_week past ``completed`` if it still points at it.

        Returns None (no write) when the pointer has already moved, so a
        retried call is harmless.
        """
        s = self._by_id.get(student_id)
        if s is None or s.current_week != completed.week_number:
            return None
        history = s.completed_weeks
        if not s.has_completed(completed.week_number):
            history = (*history, completed)
        updated = replace(
            s, current_week=completed.week_number + 1, completed_weeks=history
        )
        self._by_id[student_id] = updated
        return updated

    async def replace_progress_view(
        self,
        student_id: UUID,
        *,
        current_week: int,
        completed_weeks: tuple[CompletedWeek, ...],
    ) -> Student | None:
        s = self._by_id.get(student_id)
        if s is None:
            return None
        updated = replace(
            s, current_week=current_week, completed_weeks=completed_weeks
        )
        self._by_id[student_id] = updated
        return updated
