from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lms.models.week import Week, WeekScope
from lms.services.errors import DuplicateKeyError


class WeekRepo(Protocol):
    async def get_by_id(self, week_id: UUID) -> Week | None: ...
    async def find_by_number(
        self, week_number: int, *, scope: WeekScope | None = None
    ) -> Week | None: ...
    async def list_for_scope(self, scope: WeekScope) -> list[Week]: ...
    async def add(self, week: Week) -> None: ...
    async def delete(self, week_id: UUID) -> bool: ...


class InMemoryWeekRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Week] = {}

    async def get_by_id(self, week_id: UUID) -> Week | None:
        return self._by_id.get(week_id)

    async def find_by_number(
        self, week_number: int, *, scope: WeekScope | None = None
    ) -> Week | None:
        """Active week with this number; scope=None matches any track."""
        for week in self._by_id.values():
            if week.week_number != week_number or not week.is_active:
                continue
            if scope is not None and week.scope != scope:
                continue
            return week
        return None

    async def list_for_scope(self, scope: WeekScope) -> list[Week]:
        weeks = [w for w in self._by_id.values() if w.scope == scope and w.is_active]
        return sorted(weeks, key=lambda w: w.week_number)

    async def add(self, week: Week) -> None:
        for existing in self._by_id.values():
            if (
                existing.week_number == week.week_number
                and existing.scope == week.scope
            ):
                raise DuplicateKeyError(
                    f"week {week.week_number} already exists for this track"
                )
        self._by_id[week.id] = week

    async def delete(self, week_id: UUID) -> bool:
        return self._by_id.pop(week_id, None) is not None
