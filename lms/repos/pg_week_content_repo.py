"""PostgreSQL implementation of WeekContentRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import WeekContentRow
from lms.models.week_content import WeekContent


class PgWeekContentRepo:
    """Satisfies the WeekContentRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, content_id: UUID) -> WeekContent | None:
        row = await self._session.get(WeekContentRow, content_id)
        if row is None:
            return None
        return _row_to_content(row)

    async def list_active_for_week(self, week_id: UUID) -> list[WeekContent]:
        stmt = (
            select(WeekContentRow)
            .where(
                WeekContentRow.week_id == week_id,
                WeekContentRow.is_active.is_(True),
            )
            .order_by(WeekContentRow.order, WeekContentRow.created_at)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_content(r) for r in rows]

    async def add(self, content: WeekContent) -> None:
        row = WeekContentRow(
            id=content.id,
            week_id=content.week_id,
            type=content.type,
            title=content.title,
            description=content.description,
            file_url=content.file_url,
            file_name=content.file_name,
            is_required=content.is_required,
            estimated_time=content.estimated_time,
            order=content.order,
            is_active=content.is_active,
            due_date_time=content.due_date_time,
            allow_late_submission=content.allow_late_submission,
            late_penalty=content.late_penalty,
            max_score=content.max_score,
            created_at=content.created_at,
        )
        self._session.add(row)
        await self._session.flush()

    async def delete_for_week(self, week_id: UUID) -> int:
        result = await self._session.execute(
            delete(WeekContentRow).where(WeekContentRow.week_id == week_id)
        )
        return result.rowcount


def _row_to_content(row: WeekContentRow) -> WeekContent:
    return WeekContent(
        id=row.id,
        week_id=row.week_id,
        type=row.type,
        title=row.title,
        created_at=row.created_at,
        description=row.description,
        file_url=row.file_url,
        file_name=row.file_name,
        is_required=row.is_required,
        estimated_time=row.estimated_time,
        order=row.order,
        is_active=row.is_active,
        due_date_time=row.due_date_time,
        allow_late_submission=row.allow_late_submission,
        late_penalty=row.late_penalty,
        max_score=row.max_score,
    )
