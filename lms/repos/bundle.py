"""Repository bundle handed to the services.

Without DATABASE_URL the API and worker share one set of in-memory
repos (module singletons, reset by the test fixtures).  With a database
each unit of work gets PostgreSQL repos bound to its session.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from lms.repos.pg_progress_repo import PgProgressRepo
from lms.repos.pg_student_repo import PgStudentRepo
from lms.repos.pg_submission_repo import PgSubmissionRepo
from lms.repos.pg_week_content_repo import PgWeekContentRepo
from lms.repos.pg_week_repo import PgWeekRepo
from lms.repos.progress_repo import InMemoryProgressRepo, ProgressRepo
from lms.repos.student_repo import InMemoryStudentRepo, StudentRepo
from lms.repos.submission_repo import InMemorySubmissionRepo, SubmissionRepo
from lms.repos.week_content_repo import InMemoryWeekContentRepo, WeekContentRepo
from lms.repos.week_repo import InMemoryWeekRepo, WeekRepo


@dataclass(frozen=True, slots=True)
class Repositories:
    weeks: WeekRepo
    contents: WeekContentRepo
    submissions: SubmissionRepo
    progress: ProgressRepo
    students: StudentRepo


def in_memory_repositories() -> Repositories:
    return Repositories(
        weeks=InMemoryWeekRepo(),
        contents=InMemoryWeekContentRepo(),
        submissions=InMemorySubmissionRepo(),
        progress=InMemoryProgressRepo(),
        students=InMemoryStudentRepo(),
    )


def pg_repositories(session: AsyncSession) -> Repositories:
    return Repositories(
        weeks=PgWeekRepo(session),
        contents=PgWeekContentRepo(session),
        submissions=PgSubmissionRepo(session),
        progress=PgProgressRepo(session),
        students=PgStudentRepo(session),
    )


# Shared in-memory store used when no database is configured.
IN_MEMORY = in_memory_repositories()
