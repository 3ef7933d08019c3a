"""Progress ledger: one StudentProgress record per (student, week).

Status moves ``not_started -> in_progress -> completed`` with score;
the access gate (``access_control.is_unlocked``) is a separate axis that
only ever opens.  ``completed`` is terminal: later recomputes never
lower a completed record, they are simply not written.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID

from lms.core.metrics import WEEKS_UNLOCKED
from lms.models.progress import (
    AccessControl,
    StudentProgress,
    UnlockedBy,
    derive_status,
)
from lms.repos.progress_repo import ProgressRepo
from lms.services.completion_evaluator import Evaluation
from lms.services.errors import DuplicateKeyError

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(UTC)


class ProgressLedger:
    def __init__(self, progress: ProgressRepo) -> None:
        self._progress = progress

    async def get(self, student_id: UUID, week_id: UUID) -> StudentProgress | None:
        return await self._progress.get(student_id, week_id)

    async def get_or_create(
        self,
        student_id: UUID,
        week_id: UUID,
        *,
        access_control: AccessControl | None = None,
    ) -> StudentProgress:
        """Return the record, creating a locked ``not_started`` one if absent.

        Find-then-insert is not atomic; the unique (student, week)
        constraint rejects the losing insert and we re-read the winner.
        """
        existing = await self._progress.get(student_id, week_id)
        if existing is not None:
            return existing

        record = StudentProgress.new(
            student_id=student_id,
            week_id=week_id,
            now=_now(),
            access_control=access_control,
        )
        try:
            await self._progress.add(record)
        except DuplicateKeyError:
            logger.info(
                "Concurrent progress create for student=%s week=%s; re-reading",
                student_id,
                week_id,
            )
            winner = await self._progress.get(student_id, week_id)
            if winner is None:
                raise
            return winner

        logger.info(
            "Progress created student=%s week=%s status=%s",
            student_id,
            week_id,
            record.status,
            extra={"student_id": str(student_id), "week_id": str(week_id)},
        )
        return record

    async def add_completed_material(
        self, student_id: UUID, week_id: UUID, material_id: str
    ) -> bool:
        """Add to the completed set.  False when it was already there."""
        await self.get_or_create(student_id, week_id)
        return await self._progress.add_completed_material(
            student_id, week_id, material_id, _now()
        )

    async def apply_evaluation(
        self, student_id: UUID, week_id: UUID, evaluation: Evaluation
    ) -> StudentProgress:
        """Write score/status back.  Completed records are left untouched."""
        current = await self.get_or_create(student_id, week_id)
        if current.is_completed:
            return current

        status = derive_status(evaluation.score, is_unlocked=current.is_unlocked)
        if status == current.status and evaluation.score == current.score:
            return current

        updated = await self._progress.record_score(
            student_id,
            week_id,
            score=evaluation.score,
            status=status,
            now=_now(),
        )
        if updated is None:
            # Another request completed the week between our read and write.
            reread = await self._progress.get(student_id, week_id)
            return reread if reread is not None else current

        if updated.status != current.status:
            logger.info(
                "Progress student=%s week=%s %s -> %s (score=%d)",
                student_id,
                week_id,
                current.status,
                updated.status,
                updated.score,
                extra={"student_id": str(student_id), "week_id": str(week_id)},
            )
        return updated

    async def apply_unlock(
        self,
        student_id: UUID,
        week_id: UUID,
        *,
        reason: str,
        unlocked_by: UnlockedBy,
    ) -> StudentProgress:
        """Open the access gate; a no-op when it is already open."""
        current = await self.get_or_create(student_id, week_id)
        if current.is_unlocked:
            return current

        now = _now()
        access = AccessControl(
            is_unlocked=True,
            unlocked_at=now,
            unlocked_by=unlocked_by,
            unlock_reason=reason,
        )
        updated = await self._progress.unlock(student_id, week_id, access, now)
        if updated is None:
            reread = await self._progress.get(student_id, week_id)
            return reread if reread is not None else current

        WEEKS_UNLOCKED.labels(unlocked_by=unlocked_by).inc()
        logger.info(
            "Week unlocked student=%s week=%s by=%s reason=%s",
            student_id,
            week_id,
            unlocked_by,
            reason,
            extra={"student_id": str(student_id), "week_id": str(week_id)},
        )
        return updated
