"""Sequential week unlocking.

When a student completes the week their ``current_week`` pointer is on,
the next week of the same track is unlocked and the pointer advances.
The two writes (progress ledger, student document) share no
transaction; both are idempotent so a retry, or the repair pass in
lms.services.repair, converges them.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID

from lms.models.progress import StudentProgress
from lms.models.student import CompletedWeek, Student
from lms.models.week import Week, WeekScope
from lms.repos.bundle import Repositories
from lms.services.progress_ledger import ProgressLedger
from lms.services.student_service import record_week_completed

logger = logging.getLogger(__name__)


class UnlockPropagator:
    def __init__(self, repos: Repositories, ledger: ProgressLedger) -> None:
        self._repos = repos
        self._ledger = ledger

    async def unlock_next(
        self,
        student_id: UUID,
        completed_week_number: int,
        *,
        scope: WeekScope | None = None,
    ) -> StudentProgress | None:
        """Unlock week N+1 for the student.  None at the end of the course."""
        next_number = completed_week_number + 1
        next_week = await self._repos.weeks.find_by_number(next_number, scope=scope)
        if next_week is None:
            logger.info(
                "No week %d after week %d for student=%s; end of course",
                next_number,
                completed_week_number,
                student_id,
            )
            return None

        await self._ledger.get_or_create(student_id, next_week.id)
        return await self._ledger.apply_unlock(
            student_id,
            next_week.id,
            reason=f"Previous week {completed_week_number} completed",
            unlocked_by="auto",
        )

    async def on_week_completed(
        self, student: Student, week: Week, score: int
    ) -> StudentProgress | None:
        """Propagate a completion if it is the student's current week.

        Completing an earlier or later week never moves the pointer or
        unlocks anything.
        """
        if student.current_week != week.week_number:
            logger.debug(
                "Week %d completed but student=%s is on week %d; no propagation",
                week.week_number,
                student.id,
                student.current_week,
            )
            return None

        unlocked = await self.unlock_next(
            student.id, week.week_number, scope=week.scope
        )
        # Advanced even when there is no next week: current_week then
        # reads one past the last week of the course.
        advanced = await record_week_completed(
            self._repos.students,
            student,
            CompletedWeek(
                week_number=week.week_number,
                completed_at=datetime.now(UTC),
                score=score,
            ),
        )
        if advanced is not None:
            logger.info(
                "Student=%s advanced to week %d",
                student.id,
                advanced.current_week,
                extra={"student_id": str(student.id), "week_id": str(week.id)},
            )
        return unlocked
