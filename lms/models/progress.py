from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal
from uuid import UUID, uuid4

ProgressStatus = Literal[
    "not_started", "in_progress", "completed", "unlocked", "locked"
]
UnlockedBy = Literal["auto", "manual", "admin"]


def derive_status(
    score: int, *, is_unlocked: bool, was_completed: bool = False
) -> ProgressStatus:
    """Status is a pure function of score and the access gate.

    ``completed`` is terminal: once reached it is kept even if a later
    recompute comes out lower.
    """
    if was_completed or score >= 100:
        return "completed"
    if score > 0:
        return "in_progress"
    if is_unlocked:
        return "unlocked"
    return "not_started"


@dataclass(frozen=True, slots=True)
class AccessControl:
    is_unlocked: bool = False
    unlocked_at: datetime | None = None
    unlocked_by: UnlockedBy | None = None
    unlock_reason: str | None = None


@dataclass(frozen=True, slots=True)
class StudentProgress:
    """Progress ledger entry, unique per (student, week)."""

    id: UUID
    student_id: UUID
    week_id: UUID
    status: ProgressStatus = "not_started"
    score: int = 0
    completed_materials: frozenset[str] = frozenset()
    access_control: AccessControl = field(default_factory=AccessControl)
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def is_unlocked(self) -> bool:
        return self.access_control.is_unlocked

    @staticmethod
    def new(
        *,
        student_id: UUID,
        week_id: UUID,
        now: datetime,
        access_control: AccessControl | None = None,
    ) -> StudentProgress:
        access = access_control or AccessControl()
        return StudentProgress(
            id=uuid4(),
            student_id=student_id,
            week_id=week_id,
            status=derive_status(0, is_unlocked=access.is_unlocked),
            access_control=access,
            created_at=now,
            updated_at=now,
        )
