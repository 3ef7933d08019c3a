"""Who may open a week.

The gate is independent of the score: a week the student has reached
(by pointer, by unlock, or by finishing it) stays readable.
"""

from __future__ import annotations

from lms.models.progress import StudentProgress
from lms.models.student import Student
from lms.models.week import Week


def can_access(student: Student, week: Week, progress: StudentProgress | None) -> bool:
    completed = progress is not None and progress.is_completed
    unlocked = progress is not None and progress.is_unlocked

    if week.unlock_conditions.manual_unlock_only:
        return completed or unlocked

    return (
        completed
        or unlocked
        or week.week_number <= student.current_week
        or not week.unlock_conditions.depends_on_previous_week
        or week.week_number == 1
    )
