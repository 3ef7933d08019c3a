from __future__ import annotations

import logging
from datetime import UTC, datetime

from lms.models.progress import AccessControl
from lms.models.student import CompletedWeek, Student
from lms.models.week import WeekScope
from lms.repos.bundle import Repositories
from lms.repos.student_repo import StudentRepo
from lms.services.progress_ledger import ProgressLedger

logger = logging.getLogger(__name__)

FIRST_WEEK_REASON = "First week"


async def register_student(
    repos: Repositories,
    *,
    name: str,
    year: str,
    curriculum: str,
    student_type: str,
    guardian_phone: str | None = None,
) -> Student:
    """Create a student on week 1, with week 1 already unlocked."""
    name = name.strip()
    if not name:
        raise ValueError("name must not be empty")

    student = Student.new(
        name=name,
        scope=WeekScope(year=year, curriculum=curriculum, student_type=student_type),
        guardian_phone=guardian_phone,
    )
    await repos.students.add(student)

    first_week = await repos.weeks.find_by_number(1, scope=student.scope)
    if first_week is None:
        logger.warning(
            "No week 1 for %s/%s/%s; student=%s starts without an unlocked week",
            year,
            curriculum,
            student_type,
            student.id,
        )
    else:
        await ProgressLedger(repos.progress).get_or_create(
            student.id,
            first_week.id,
            access_control=AccessControl(
                is_unlocked=True,
                unlocked_at=datetime.now(UTC),
                unlocked_by="auto",
                unlock_reason=FIRST_WEEK_REASON,
            ),
        )

    logger.info(
        "Student registered id=%s", student.id, extra={"student_id": str(student.id)}
    )
    return student


async def record_week_completed(
    students: StudentRepo, student: Student, completed: CompletedWeek
) -> Student | None:
    """Append to the history and advance the pointer.  Safe to retry:
    returns None when the pointer has already moved past the week."""
    return await students.advance_current_week(student.id, completed)
