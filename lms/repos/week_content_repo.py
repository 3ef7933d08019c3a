from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lms.models.week_content import WeekContent


class WeekContentRepo(Protocol):
    async def get_by_id(self, content_id: UUID) -> WeekContent | None: ...
    async def list_active_for_week(self, week_id: UUID) -> list[WeekContent]: ...
    async def add(self, content: WeekContent) -> None: ...
    async def delete_for_week(self, week_id: UUID) -> int: ...


class InMemoryWeekContentRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, WeekContent] = {}

    async def get_by_id(self, content_id: UUID) -> WeekContent | None:
        return self._by_id.get(content_id)

    async def list_active_for_week(self, week_id: UUID) -> list[WeekContent]:
        rows = [
            c for c in self._by_id.values() if c.week_id == week_id and c.is_active
        ]
        return sorted(rows, key=lambda c: (c.order, c.created_at))

    async def add(self, content: WeekContent) -> None:
        self._by_id[content.id] = content

    async def delete_for_week(self, week_id: UUID) -> int:
        doomed = [cid for cid, c in self._by_id.items() if c.week_id == week_id]
        for cid in doomed:
            del self._by_id[cid]
        return len(doomed)
