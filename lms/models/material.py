from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

LEGACY_PREFIX = "legacy-"


def legacy_material_id(sub_id: UUID | str) -> str:
    return f"{LEGACY_PREFIX}{sub_id}"


def normalize_material_id(material_id: str) -> str:
    """Strip the legacy prefix so the stored id is the embedded sub-document id."""
    if material_id.startswith(LEGACY_PREFIX):
        return material_id[len(LEGACY_PREFIX) :]
    return material_id


@dataclass(frozen=True, slots=True)
class Material:
    """A week material as seen by callers, whichever source it came from.

    ``id`` is the WeekContent id, or ``legacy-<sub id>`` for entries taken
    from the embedded Week.materials list.  ``original_material_id`` is
    only set for legacy entries and points back at the embedded sub id.
    """

    id: str
    week_id: UUID
    type: str
    title: str
    source: str  # content|legacy
    original_material_id: str | None = None
    description: str | None = None
    file_url: str | None = None
    file_name: str | None = None
    is_required: bool = True
    estimated_time: int = 30
    order: int = 0
    created_at: datetime | None = None
    due_date_time: datetime | None = None
    allow_late_submission: bool = False
    late_penalty: int = 0
    max_score: int = 100

    @property
    def is_homework(self) -> bool:
        return self.type == "homework"

    def identifiers(self) -> frozenset[str]:
        """Every id a completion or submission record may reference."""
        if self.original_material_id is None:
            return frozenset({self.id})
        return frozenset({self.id, self.original_material_id})

    def dedup_key(self) -> tuple[str, str, str]:
        return (
            self.title.strip().casefold(),
            self.type,
            (self.file_name or "").strip().casefold(),
        )
