"""Admin-side week and content management."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from lms.models.week import LegacyMaterial, UnlockConditions, Week, WeekScope
from lms.models.week_content import WeekContent
from lms.repos.bundle import Repositories
from lms.services.errors import WeekNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WeekDeletion:
    week_id: UUID
    contents_deleted: int
    progress_deleted: int


async def create_week(
    repos: Repositories,
    *,
    week_number: int,
    title: str,
    scope: WeekScope,
    description: str = "",
    materials: tuple[LegacyMaterial, ...] = (),
    unlock_conditions: UnlockConditions | None = None,
) -> Week:
    week = Week.new(
        week_number=week_number,
        title=title,
        scope=scope,
        description=description,
        materials=materials,
        unlock_conditions=unlock_conditions,
    )
    await repos.weeks.add(week)
    logger.info(
        "Week %d created id=%s", week_number, week.id, extra={"week_id": str(week.id)}
    )
    return week


async def add_content(repos: Repositories, content: WeekContent) -> WeekContent:
    if await repos.weeks.get_by_id(content.week_id) is None:
        raise WeekNotFoundError(f"week {content.week_id} not found")
    await repos.contents.add(content)
    return content


async def delete_week(repos: Repositories, week_id: UUID) -> WeekDeletion:
    """Hard-delete a week with its contents and every progress record on it.

    Submissions are kept; they reference the week by id only.
    """
    if await repos.weeks.get_by_id(week_id) is None:
        raise WeekNotFoundError(f"week {week_id} not found")

    contents_deleted = await repos.contents.delete_for_week(week_id)
    progress_deleted = await repos.progress.delete_for_week(week_id)
    await repos.weeks.delete(week_id)

    logger.warning(
        "Week %s deleted (%d contents, %d progress records)",
        week_id,
        contents_deleted,
        progress_deleted,
        extra={"week_id": str(week_id)},
    )
    return WeekDeletion(
        week_id=week_id,
        contents_deleted=contents_deleted,
        progress_deleted=progress_deleted,
    )
