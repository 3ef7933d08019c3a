"""Week completion scoring.

A material is done when:
  - homework: a submission exists for it (by resolved id or legacy
    original id) with status submitted, late or graded;
  - anything else: its id or legacy original id is in the student's
    completed-materials set.

score = round_half_up(100 * done / total), 0 for an empty week.  The
evaluator only reads; writing the result back is the ledger's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from lms.core.metrics import PROGRESS_EVALUATIONS
from lms.models.material import Material
from lms.models.submission import DONE_STATUSES, HomeworkSubmission
from lms.repos.bundle import Repositories
from lms.services.material_resolver import resolve_materials


@dataclass(frozen=True, slots=True)
class Evaluation:
    score: int
    completed_count: int
    total_count: int

    @property
    def is_complete(self) -> bool:
        return self.score >= 100


def percent(done: int, total: int) -> int:
    """Integer percentage, rounding halves up."""
    if total <= 0:
        return 0
    return (200 * done + total) // (2 * total)


def score_materials(
    materials: list[Material],
    completed_materials: frozenset[str],
    submissions: list[HomeworkSubmission],
) -> Evaluation:
    submitted = {s.material_id for s in submissions if s.status in DONE_STATUSES}

    done = 0
    for material in materials:
        ids = material.identifiers()
        if material.is_homework:
            if ids & submitted:
                done += 1
        elif ids & completed_materials:
            done += 1

    total = len(materials)
    return Evaluation(
        score=percent(done, total), completed_count=done, total_count=total
    )


async def evaluate(student_id: UUID, week_id: UUID, repos: Repositories) -> Evaluation:
    materials = await resolve_materials(
        week_id, weeks=repos.weeks, contents=repos.contents
    )
    progress = await repos.progress.get(student_id, week_id)
    submissions = await repos.submissions.list_for_student_week(student_id, week_id)
    PROGRESS_EVALUATIONS.inc()
    return score_materials(
        materials,
        progress.completed_materials if progress else frozenset(),
        submissions,
    )
