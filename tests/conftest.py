from __future__ import annotations

import asyncio
import uuid
from datetime import UTC, datetime, timedelta

import jwt
import pytest
from fastapi.testclient import TestClient

from lms.core.config import SETTINGS
from lms.main import app
from lms.models.student import Student
from lms.models.week import LegacyMaterial, UnlockConditions, Week, WeekScope
from lms.models.week_content import WeekContent
from lms.repos.bundle import IN_MEMORY, Repositories, in_memory_repositories
from lms.services import token_service
from lms.services.notifications import notification_dispatcher
from lms.services.storage import file_storage
from lms.services.student_service import register_student
from lms.services.task_queue import task_queue

SCOPE = WeekScope(year="Year 9", curriculum="Cambridge", student_type="Online")


@pytest.fixture(autouse=True)
def reset_repositories() -> None:
    """Clear the shared in-memory repos between tests."""
    IN_MEMORY.weeks._by_id.clear()  # type: ignore[attr-defined]
    IN_MEMORY.contents._by_id.clear()  # type: ignore[attr-defined]
    IN_MEMORY.submissions._by_id.clear()  # type: ignore[attr-defined]
    IN_MEMORY.submissions._by_key.clear()  # type: ignore[attr-defined]
    IN_MEMORY.progress._store.clear()  # type: ignore[attr-defined]
    IN_MEMORY.students._by_id.clear()  # type: ignore[attr-defined]


@pytest.fixture(autouse=True)
def reset_task_queue() -> None:
    if hasattr(task_queue, "_queues"):
        task_queue._queues.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_collaborators() -> None:
    if hasattr(file_storage, "_files"):
        file_storage._files.clear()  # type: ignore[union-attr]
    if hasattr(notification_dispatcher, "sent"):
        notification_dispatcher.sent.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def repos() -> Repositories:
    """Fresh repos for service-level tests (not shared with the app)."""
    return in_memory_repositories()


def run(coro):
    return asyncio.run(coro)


def mint_token(sub: str = "test-user", roles: list[str] | None = None) -> str:
    """Sign a token the way the auth service does."""
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "iss": token_service.ISSUER,
        "aud": token_service.AUDIENCE,
        "exp": now + timedelta(minutes=15),
        "iat": now,
        "jti": str(uuid.uuid4()),
        "roles": roles or ["student"],
    }
    return jwt.encode(payload, SETTINGS.jwt_secret, algorithm=token_service.ALGORITHM)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def student_headers(student: Student) -> dict[str, str]:
    return auth_header(mint_token(str(student.id), roles=["student"]))


def admin_headers() -> dict[str, str]:
    return auth_header(mint_token("test-admin", roles=["admin"]))


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------


def due_in(days: float) -> datetime:
    return datetime.now(UTC) + timedelta(days=days)


def seed_week(
    repos: Repositories,
    week_number: int,
    *,
    scope: WeekScope = SCOPE,
    legacy: tuple[LegacyMaterial, ...] = (),
    unlock_conditions: UnlockConditions | None = None,
) -> Week:
    week = Week.new(
        week_number=week_number,
        title=f"Week {week_number}",
        scope=scope,
        materials=legacy,
        unlock_conditions=unlock_conditions,
    )
    run(repos.weeks.add(week))
    return week


def seed_content(
    repos: Repositories,
    week: Week,
    type: str = "notes",
    title: str | None = None,
    *,
    order: int = 0,
    file_name: str | None = None,
    due_date_time: datetime | None = None,
    allow_late_submission: bool = False,
    late_penalty: int = 0,
) -> WeekContent:
    if type == "homework" and due_date_time is None:
        due_date_time = due_in(7)
    content = WeekContent.new(
        week_id=week.id,
        type=type,
        title=title or f"{type} {order}",
        order=order,
        file_name=file_name,
        due_date_time=due_date_time,
        allow_late_submission=allow_late_submission,
        late_penalty=late_penalty,
    )
    run(repos.contents.add(content))
    return content


def seed_student(
    repos: Repositories,
    *,
    name: str = "Amina",
    scope: WeekScope = SCOPE,
    guardian_phone: str | None = "+201000000000",
) -> Student:
    return run(
        register_student(
            repos,
            name=name,
            year=scope.year,
            curriculum=scope.curriculum,
            student_type=scope.student_type,
            guardian_phone=guardian_phone,
        )
    )
