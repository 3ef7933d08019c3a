"""PostgreSQL implementation of WeekRepo."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import WeekRow
from lms.models.week import (
    LegacyMaterial,
    UnlockConditions,
    Week,
    WeekScope,
    as_utc,
)
from lms.services.errors import DuplicateKeyError


class PgWeekRepo:
    """Satisfies the WeekRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, week_id: UUID) -> Week | None:
        row = await self._session.get(WeekRow, week_id)
        if row is None:
            return None
        return _row_to_week(row)

    async def find_by_number(
        self, week_number: int, *, scope: WeekScope | None = None
    ) -> Week | None:
        stmt = select(WeekRow).where(
            WeekRow.week_number == week_number, WeekRow.is_active.is_(True)
        )
        if scope is not None:
            stmt = stmt.where(
                WeekRow.year == scope.year,
                WeekRow.curriculum == scope.curriculum,
                WeekRow.student_type == scope.student_type,
            )
        row = (await self._session.execute(stmt.limit(1))).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_week(row)

    async def list_for_scope(self, scope: WeekScope) -> list[Week]:
        stmt = (
            select(WeekRow)
            .where(
                WeekRow.year == scope.year,
                WeekRow.curriculum == scope.curriculum,
                WeekRow.student_type == scope.student_type,
                WeekRow.is_active.is_(True),
            )
            .order_by(WeekRow.week_number)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_week(r) for r in rows]

    async def add(self, week: Week) -> None:
        conditions = week.unlock_conditions
        row = WeekRow(
            id=week.id,
            week_number=week.week_number,
            title=week.title,
            description=week.description,
            year=week.scope.year,
            curriculum=week.scope.curriculum,
            student_type=week.scope.student_type,
            is_active=week.is_active,
            materials=[_material_to_doc(m) for m in week.materials],
            unlock_conditions={
                "depends_on_previous_week": conditions.depends_on_previous_week,
                "manual_unlock_only": conditions.manual_unlock_only,
            },
        )
        try:
            async with self._session.begin_nested():
                self._session.add(row)
                await self._session.flush()
        except IntegrityError:
            raise DuplicateKeyError(
                f"week {week.week_number} already exists for this track"
            ) from None

    async def delete(self, week_id: UUID) -> bool:
        result = await self._session.execute(
            delete(WeekRow).where(WeekRow.id == week_id)
        )
        return result.rowcount > 0


def _material_to_doc(m: LegacyMaterial) -> dict:
    return {
        "id": str(m.id),
        "type": m.type,
        "title": m.title,
        "description": m.description,
        "file_url": m.file_url,
        "file_name": m.file_name,
        "is_required": m.is_required,
        "estimated_time": m.estimated_time,
        "due_date": m.due_date.isoformat() if m.due_date else None,
        "max_score": m.max_score,
    }


def _doc_to_material(doc: dict) -> LegacyMaterial:
    due = doc.get("due_date")
    return LegacyMaterial(
        id=UUID(doc["id"]),
        type=doc["type"],
        title=doc["title"],
        description=doc.get("description"),
        file_url=doc.get("file_url"),
        file_name=doc.get("file_name"),
        is_required=doc.get("is_required", True),
        estimated_time=doc.get("estimated_time", 30),
        due_date=as_utc(datetime.fromisoformat(due)) if due else None,
        max_score=doc.get("max_score", 100),
    )


def _row_to_week(row: WeekRow) -> Week:
    conditions = row.unlock_conditions or {}
    return Week(
        id=row.id,
        week_number=row.week_number,
        title=row.title,
        description=row.description or "",
        scope=WeekScope(
            year=row.year, curriculum=row.curriculum, student_type=row.student_type
        ),
        is_active=row.is_active,
        materials=tuple(_doc_to_material(d) for d in row.materials or []),
        unlock_conditions=UnlockConditions(
            depends_on_previous_week=conditions.get("depends_on_previous_week", True),
            manual_unlock_only=conditions.get("manual_unlock_only", False),
        ),
    )
