"""Canonical material list for a week.

Materials live in two places: the normalized ``week_contents``
collection and the legacy ``materials`` list embedded in each Week.
Both stay live, so every read merges them:

  1. active WeekContent rows, ordered by (order, created_at), win;
  2. legacy entries get a ``legacy-<sub id>`` id and keep the sub id
     as ``original_material_id``;
  3. a legacy entry whose (title, type, file name) matches a normalized
     entry is dropped.  Titles and file names are compared trimmed and
     case-folded, so this is a heuristic, not a key comparison.

A missing week resolves to an empty list rather than an error so read
paths stay usable when a week has been deleted under a student.
"""

from __future__ import annotations

import logging
from uuid import UUID

from lms.models.material import Material, legacy_material_id, normalize_material_id
from lms.models.week import LegacyMaterial, Week, as_utc
from lms.models.week_content import WeekContent
from lms.repos.week_content_repo import WeekContentRepo
from lms.repos.week_repo import WeekRepo

logger = logging.getLogger(__name__)


def _from_content(c: WeekContent) -> Material:
    return Material(
        id=str(c.id),
        week_id=c.week_id,
        type=c.type,
        title=c.title,
        source="content",
        description=c.description,
        file_url=c.file_url,
        file_name=c.file_name,
        is_required=c.is_required,
        estimated_time=c.estimated_time,
        order=c.order,
        created_at=c.created_at,
        due_date_time=as_utc(c.due_date_time),
        allow_late_submission=c.allow_late_submission,
        late_penalty=c.late_penalty,
        max_score=c.max_score,
    )


def _from_legacy(week: Week, m: LegacyMaterial, position: int) -> Material:
    # Legacy homework only ever had a plain due date and no late policy.
    return Material(
        id=legacy_material_id(m.id),
        week_id=week.id,
        type=m.type,
        title=m.title,
        source="legacy",
        original_material_id=str(m.id),
        description=m.description,
        file_url=m.file_url,
        file_name=m.file_name,
        is_required=m.is_required,
        estimated_time=m.estimated_time,
        order=position,
        due_date_time=as_utc(m.due_date),
        max_score=m.max_score,
    )


def merge_materials(week: Week, contents: list[WeekContent]) -> list[Material]:
    """Pure merge of the two sources; no I/O."""
    resolved = [_from_content(c) for c in contents]
    seen = {m.dedup_key() for m in resolved}

    for position, legacy in enumerate(week.materials):
        material = _from_legacy(week, legacy, position)
        if material.dedup_key() in seen:
            logger.debug(
                "Dropping legacy material %s duplicated in week_contents",
                material.id,
                extra={"week_id": str(week.id)},
            )
            continue
        resolved.append(material)

    return resolved


async def resolve_materials(
    week_id: UUID, *, weeks: WeekRepo, contents: WeekContentRepo
) -> list[Material]:
    week = await weeks.get_by_id(week_id)
    if week is None:
        return []
    return merge_materials(week, await contents.list_active_for_week(week_id))


def find_material(materials: list[Material], material_id: str) -> Material | None:
    """Match either the resolved id or a legacy original id."""
    wanted = {material_id, normalize_material_id(material_id)}
    for m in materials:
        if m.identifiers() & wanted:
            return m
    return None
