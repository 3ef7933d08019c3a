from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID, uuid4

from lms.models.week import MATERIAL_TYPES, as_utc


@dataclass(frozen=True, slots=True)
class WeekContent:
    """Normalized material row; authoritative over the legacy embedded list."""

    id: UUID
    week_id: UUID
    type: str
    title: str
    created_at: datetime
    description: str | None = None
    file_url: str | None = None
    file_name: str | None = None
    is_required: bool = True
    estimated_time: int = 30  # minutes
    order: int = 0
    is_active: bool = True
    # homework only
    due_date_time: datetime | None = None
    allow_late_submission: bool = False
    late_penalty: int = 0  # flat percent, 0..100
    max_score: int = 100

    @staticmethod
    def new(
        *,
        week_id: UUID,
        type: str,
        title: str,
        file_name: str | None = None,
        file_url: str | None = None,
        description: str | None = None,
        order: int = 0,
        due_date_time: datetime | None = None,
        allow_late_submission: bool = False,
        late_penalty: int = 0,
        created_at: datetime | None = None,
    ) -> WeekContent:
        if type not in MATERIAL_TYPES:
            raise ValueError(f"unknown material type {type!r}")
        if type == "homework" and due_date_time is None:
            raise ValueError("homework requires due_date_time")
        if not 0 <= late_penalty <= 100:
            raise ValueError("late_penalty must be within 0..100")
        return WeekContent(
            id=uuid4(),
            week_id=week_id,
            type=type,
            title=title,
            created_at=created_at or datetime.now(UTC),
            description=description,
            file_url=file_url,
            file_name=file_name,
            order=order,
            due_date_time=as_utc(due_date_time),
            allow_late_submission=allow_late_submission,
            late_penalty=late_penalty,
        )
