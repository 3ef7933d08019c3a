from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

# homework|notes|pdf|summary
MATERIAL_TYPES = ("homework", "notes", "pdf", "summary")


def as_utc(value: datetime | None) -> datetime | None:
    """Due dates without an offset are read as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class WeekScope:
    """Eligibility track a week belongs to."""

    year: str  # Year 8|Year 9|Year 10
    curriculum: str  # Cambridge|Edexcel
    student_type: str  # School|Center|Online


@dataclass(frozen=True, slots=True)
class UnlockConditions:
    depends_on_previous_week: bool = True
    manual_unlock_only: bool = False


@dataclass(frozen=True, slots=True)
class LegacyMaterial:
    """Material embedded directly in a Week document (pre-migration form)."""

    id: UUID
    type: str
    title: str
    description: str | None = None
    file_url: str | None = None
    file_name: str | None = None
    is_required: bool = True
    estimated_time: int = 30  # minutes
    due_date: datetime | None = None
    max_score: int = 100

    @staticmethod
    def new(
        *,
        type: str,
        title: str,
        file_name: str | None = None,
        file_url: str | None = None,
        description: str | None = None,
        due_date: datetime | None = None,
    ) -> LegacyMaterial:
        if type not in MATERIAL_TYPES:
            raise ValueError(f"unknown material type {type!r}")
        return LegacyMaterial(
            id=uuid4(),
            type=type,
            title=title,
            description=description,
            file_url=file_url,
            file_name=file_name,
            due_date=as_utc(due_date),
        )


@dataclass(frozen=True, slots=True)
class Week:
    id: UUID
    week_number: int  # 1-based, unique within scope
    title: str
    scope: WeekScope
    description: str = ""
    is_active: bool = True
    materials: tuple[LegacyMaterial, ...] = ()
    unlock_conditions: UnlockConditions = field(default_factory=UnlockConditions)

    @staticmethod
    def new(
        *,
        week_number: int,
        title: str,
        scope: WeekScope,
        description: str = "",
        materials: tuple[LegacyMaterial, ...] = (),
        unlock_conditions: UnlockConditions | None = None,
    ) -> Week:
        if week_number < 1:
            raise ValueError("week_number must be >= 1")
        return Week(
            id=uuid4(),
            week_number=week_number,
            title=title,
            scope=scope,
            description=description,
            materials=materials,
            unlock_conditions=unlock_conditions or UnlockConditions(),
        )
