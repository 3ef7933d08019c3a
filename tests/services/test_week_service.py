from __future__ import annotations

from uuid import uuid4

import pytest

from lms.models.week_content import WeekContent
from lms.repos.bundle import Repositories
from lms.services import week_service
from lms.services.errors import DuplicateKeyError, WeekNotFoundError
from tests.conftest import SCOPE, run, seed_content, seed_student, seed_week


def test_week_number_is_unique_per_track(repos: Repositories) -> None:
    run(week_service.create_week(repos, week_number=1, title="One", scope=SCOPE))
    with pytest.raises(DuplicateKeyError):
        run(week_service.create_week(repos, week_number=1, title="Again", scope=SCOPE))


def test_add_content_requires_week(repos: Repositories) -> None:
    content = WeekContent.new(week_id=uuid4(), type="notes", title="n")
    with pytest.raises(WeekNotFoundError):
        run(week_service.add_content(repos, content))


def test_delete_week_removes_contents_and_progress(repos: Repositories) -> None:
    week = seed_week(repos, 1)
    seed_content(repos, week, "notes", "a")
    seed_content(repos, week, "pdf", "b", order=1)
    student = seed_student(repos)

    deletion = run(week_service.delete_week(repos, week.id))

    assert deletion.contents_deleted == 2
    assert deletion.progress_deleted == 1
    assert run(repos.weeks.get_by_id(week.id)) is None
    assert run(repos.progress.get(student.id, week.id)) is None


def test_delete_missing_week(repos: Repositories) -> None:
    with pytest.raises(WeekNotFoundError):
        run(week_service.delete_week(repos, uuid4()))
