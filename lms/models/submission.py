from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

# submitted|late|graded|returned
SUBMISSION_STATUSES = ("submitted", "late", "graded", "returned")
# statuses that count the homework as done for progress purposes
DONE_STATUSES = frozenset({"submitted", "late", "graded"})

# pending|sent|failed
NOTIFICATION_STATUSES = ("pending", "sent", "failed")

_LETTER_GRADES: tuple[tuple[int, str], ...] = (
    (97, "A+"),
    (93, "A"),
    (90, "A-"),
    (87, "B+"),
    (83, "B"),
    (80, "B-"),
    (77, "C+"),
    (73, "C"),
    (70, "C-"),
    (67, "D+"),
    (65, "D"),
)


def letter_grade(percentage: int) -> str:
    for threshold, letter in _LETTER_GRADES:
        if percentage >= threshold:
            return letter
    return "F"


@dataclass(frozen=True, slots=True)
class SubmittedFile:
    file_name: str
    file_url: str
    file_id: str
    file_type: str  # pdf|doc|image|other
    file_size: int
    uploaded_at: datetime


@dataclass(frozen=True, slots=True)
class Grade:
    points: float
    max_points: float
    percentage: int
    letter_grade: str


@dataclass(frozen=True, slots=True)
class Feedback:
    text: str | None
    graded_by: str
    graded_at: datetime


@dataclass(frozen=True, slots=True)
class NotificationState:
    status: str = "pending"
    updated_at: datetime | None = None
    provider_message_id: str | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class HomeworkSubmission:
    id: UUID
    student_id: UUID
    week_id: UUID
    material_id: str
    title: str
    files: tuple[SubmittedFile, ...]
    submitted_at: datetime
    status: str = "submitted"
    is_late: bool = False
    late_penalty: int = 0
    description: str = ""
    grade: Grade | None = None
    feedback: Feedback | None = None
    notification: NotificationState = field(default_factory=NotificationState)

    @staticmethod
    def new(
        *,
        student_id: UUID,
        week_id: UUID,
        material_id: str,
        title: str,
        files: tuple[SubmittedFile, ...],
        submitted_at: datetime,
        is_late: bool,
        late_penalty: int,
        description: str = "",
    ) -> HomeworkSubmission:
        return HomeworkSubmission(
            id=uuid4(),
            student_id=student_id,
            week_id=week_id,
            material_id=material_id,
            title=title,
            files=files,
            submitted_at=submitted_at,
            status="late" if is_late else "submitted",
            is_late=is_late,
            late_penalty=late_penalty,
            description=description,
        )
