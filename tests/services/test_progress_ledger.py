from __future__ import annotations

import asyncio
from uuid import uuid4

from lms.models.progress import StudentProgress
from lms.repos.progress_repo import InMemoryProgressRepo
from lms.services.completion_evaluator import Evaluation
from lms.services.progress_ledger import ProgressLedger
from tests.conftest import run

STUDENT = uuid4()
WEEK = uuid4()


class _LosingRaceRepo(InMemoryProgressRepo):
    """First read misses; a concurrent writer inserts before our insert."""

    def __init__(self) -> None:
        super().__init__()
        self._raced = False

    async def get(self, student_id, week_id):
        if not self._raced:
            self._raced = True
            winner = StudentProgress(id=uuid4(), student_id=student_id, week_id=week_id)
            self._store[(student_id, week_id)] = winner
            return None
        return await super().get(student_id, week_id)


def test_get_or_create_creates_locked_not_started_record() -> None:
    ledger = ProgressLedger(InMemoryProgressRepo())
    record = run(ledger.get_or_create(STUDENT, WEEK))
    assert record.status == "not_started"
    assert record.score == 0
    assert not record.is_unlocked


def test_get_or_create_returns_existing_record() -> None:
    ledger = ProgressLedger(InMemoryProgressRepo())
    first = run(ledger.get_or_create(STUDENT, WEEK))
    second = run(ledger.get_or_create(STUDENT, WEEK))
    assert first.id == second.id


def test_get_or_create_rereads_winner_after_duplicate_insert() -> None:
    repo = _LosingRaceRepo()
    record = run(ProgressLedger(repo).get_or_create(STUDENT, WEEK))
    assert record.id == repo._store[(STUDENT, WEEK)].id


def test_concurrent_get_or_create_yields_one_record() -> None:
    repo = InMemoryProgressRepo()
    ledger = ProgressLedger(repo)

    async def both():
        return await asyncio.gather(
            ledger.get_or_create(STUDENT, WEEK), ledger.get_or_create(STUDENT, WEEK)
        )

    a, b = run(both())
    assert a.id == b.id
    assert len(repo._store) == 1


def test_apply_evaluation_moves_status_with_score() -> None:
    ledger = ProgressLedger(InMemoryProgressRepo())
    partial = run(ledger.apply_evaluation(STUDENT, WEEK, Evaluation(50, 1, 2)))
    assert (partial.status, partial.score) == ("in_progress", 50)

    done = run(ledger.apply_evaluation(STUDENT, WEEK, Evaluation(100, 2, 2)))
    assert done.status == "completed"
    assert done.completed_at is not None


def test_completed_record_is_never_lowered() -> None:
    ledger = ProgressLedger(InMemoryProgressRepo())
    run(ledger.apply_evaluation(STUDENT, WEEK, Evaluation(100, 1, 1)))

    after = run(ledger.apply_evaluation(STUDENT, WEEK, Evaluation(50, 1, 2)))

    assert after.status == "completed"
    assert after.score == 100


def test_apply_unlock_is_idempotent() -> None:
    ledger = ProgressLedger(InMemoryProgressRepo())
    first = run(ledger.apply_unlock(STUDENT, WEEK, reason="first", unlocked_by="auto"))
    again = run(ledger.apply_unlock(STUDENT, WEEK, reason="again", unlocked_by="admin"))

    assert first.is_unlocked
    assert first.status == "unlocked"
    assert again.access_control.unlock_reason == "first"
    assert again.access_control.unlocked_by == "auto"


def test_unlock_keeps_in_progress_status() -> None:
    ledger = ProgressLedger(InMemoryProgressRepo())
    run(ledger.apply_evaluation(STUDENT, WEEK, Evaluation(50, 1, 2)))
    record = run(ledger.apply_unlock(STUDENT, WEEK, reason="r", unlocked_by="manual"))
    assert record.status == "in_progress"


def test_add_completed_material_is_a_set() -> None:
    ledger = ProgressLedger(InMemoryProgressRepo())
    assert run(ledger.add_completed_material(STUDENT, WEEK, "m1")) is True
    assert run(ledger.add_completed_material(STUDENT, WEEK, "m1")) is False
    record = run(ledger.get(STUDENT, WEEK))
    assert record.completed_materials == frozenset({"m1"})
