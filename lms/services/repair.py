"""Rebuild a student's week pointer from the progress ledger.

The ledger and the student document are written separately, so a crash
between the two leaves the pointer behind.  This pass recomputes it
from ledger truth and re-runs the unlock for the week it lands on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from lms.models.student import CompletedWeek, Student
from lms.repos.bundle import Repositories
from lms.services.errors import StudentNotFoundError
from lms.services.progress_ledger import ProgressLedger
from lms.services.unlock_propagator import UnlockPropagator

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RepairResult:
    student: Student
    changed: bool


def contiguous_current_week(completed_numbers: set[int]) -> int:
    current = 1
    while current in completed_numbers:
        current += 1
    return current


async def recompute_student_pointer(
    student_id: UUID, repos: Repositories
) -> RepairResult:
    student = await repos.students.get_by_id(student_id)
    if student is None:
        raise StudentNotFoundError(f"student {student_id} not found")

    weeks = await repos.weeks.list_for_scope(student.scope)
    week_numbers = {w.id: w.week_number for w in weeks}
    history = {cw.week_number: cw for cw in student.completed_weeks}

    completed: dict[int, CompletedWeek] = {}
    for progress in await repos.progress.list_for_student(student_id):
        number = week_numbers.get(progress.week_id)
        if number is None or not progress.is_completed:
            continue
        previous = history.get(number)
        completed[number] = CompletedWeek(
            week_number=number,
            completed_at=(
                previous.completed_at
                if previous is not None
                else progress.completed_at or datetime.now(UTC)
            ),
            score=progress.score,
        )

    current_week = contiguous_current_week(set(completed))
    completed_weeks = tuple(completed[n] for n in sorted(completed))

    if current_week > 1:
        ledger = ProgressLedger(repos.progress)
        await UnlockPropagator(repos, ledger).unlock_next(
            student_id, current_week - 1, scope=student.scope
        )

    if (
        current_week == student.current_week
        and completed_weeks == student.completed_weeks
    ):
        return RepairResult(student=student, changed=False)

    updated = await repos.students.replace_progress_view(
        student_id, current_week=current_week, completed_weeks=completed_weeks
    )
    logger.warning(
        "Repaired student=%s current_week %d -> %d",
        student_id,
        student.current_week,
        current_week,
        extra={"student_id": str(student_id)},
    )
    return RepairResult(student=updated or student, changed=True)
