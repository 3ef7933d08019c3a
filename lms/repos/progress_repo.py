from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Protocol
from uuid import UUID

from lms.models.progress import (
    AccessControl,
    ProgressStatus,
    StudentProgress,
    derive_status,
)
from lms.services.errors import DuplicateKeyError


class ProgressRepo(Protocol):
    async def get(self, student_id: UUID, week_id: UUID) -> StudentProgress | None: ...
    async def list_for_student(self, student_id: UUID) -> list[StudentProgress]: ...
    async def add(self, progress: StudentProgress) -> None: ...
    async def add_completed_material(
        self, student_id: UUID, week_id: UUID, material_id: str, now: datetime
    ) -> bool: ...
    async def record_score(
        self,
        student_id: UUID,
        week_id: UUID,
        *,
        score: int,
        status: ProgressStatus,
        now: datetime,
    ) -> StudentProgress | None: ...
    async def unlock(
        self, student_id: UUID, week_id: UUID, access: AccessControl, now: datetime
    ) -> StudentProgress | None: ...
    async def delete_for_week(self, week_id: UUID) -> int: ...


class InMemoryProgressRepo:
    """Mirrors the document store: one record per (student, week), each
    mutation is a single-record atomic write."""

    def __init__(self) -> None:
        self._store: dict[tuple[UUID, UUID], StudentProgress] = {}

    async def get(self, student_id: UUID, week_id: UUID) -> StudentProgress | None:
        return self._store.get((student_id, week_id))

    async def list_for_student(self, student_id: UUID) -> list[StudentProgress]:
        return [p for (sid, _), p in self._store.items() if sid == student_id]

    async def add(self, progress: StudentProgress) -> None:
        key = (progress.student_id, progress.week_id)
        if key in self._store:
            raise DuplicateKeyError("progress already exists for this student/week")
        self._store[key] = progress

    async def add_completed_material(
        self, student_id: UUID, week_id: UUID, material_id: str, now: datetime
    ) -> bool:
        p = self._store.get((student_id, week_id))
        if p is None or material_id in p.completed_materials:
            return False
        self._store[(student_id, week_id)] = replace(
            p,
            completed_materials=p.completed_materials | {material_id},
            updated_at=now,
        )
        return True

    async def record_score(
        self,
        student_id: UUID,
        week_id: UUID,
        *,
        score: int,
        status: ProgressStatus,
        now: datetime,
    ) -> StudentProgress | None:
        """Write score/status unless the record is already completed."""
        p = self._store.get((student_id, week_id))
        if p is None or p.is_completed:
            return None
        updated = replace(
            p,
            score=score,
            status=status,
            updated_at=now,
            completed_at=now if status == "completed" else p.completed_at,
        )
        self._store[(student_id, week_id)] = updated
        return updated

    async def unlock(
        self, student_id: UUID, week_id: UUID, access: AccessControl, now: datetime
    ) -> StudentProgress | None:
        """Open the access gate.  Returns None when already unlocked."""
        p = self._store.get((student_id, week_id))
        if p is None or p.is_unlocked:
            return None
        updated = replace(
            p,
            access_control=access,
            status=derive_status(
                p.score, is_unlocked=True, was_completed=p.is_completed
            ),
            updated_at=now,
        )
        self._store[(student_id, week_id)] = updated
        return updated

    async def delete_for_week(self, week_id: UUID) -> int:
        doomed = [k for k in self._store if k[1] == week_id]
        for k in doomed:
            del self._store[k]
        return len(doomed)
