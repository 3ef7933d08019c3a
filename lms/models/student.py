from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID, uuid4

from lms.models.week import WeekScope


@dataclass(frozen=True, slots=True)
class CompletedWeek:
    week_number: int
    completed_at: datetime
    score: int


@dataclass(frozen=True, slots=True)
class Student:
    """Student account.

    ``current_week`` and ``completed_weeks`` are a denormalized view of
    the progress ledger, kept in sync imperatively and repairable with
    lms.services.repair.
    """

    id: UUID
    name: str
    scope: WeekScope
    guardian_phone: str | None = None
    current_week: int = 1
    completed_weeks: tuple[CompletedWeek, ...] = ()
    is_active: bool = True

    def has_completed(self, week_number: int) -> bool:
        return any(cw.week_number == week_number for cw in self.completed_weeks)

    @staticmethod
    def new(
        *, name: str, scope: WeekScope, guardian_phone: str | None = None
    ) -> Student:
        return Student(
            id=uuid4(), name=name, scope=scope, guardian_phone=guardian_phone
        )
