"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in lms/models/.  The
repos convert between rows and dataclasses.  Embedded sub-documents
(legacy week materials, unlock conditions, submission files, grade,
completed-week history) are stored as JSONB.

The two unique constraints below are what make get-or-create and the
single-submission rule safe under concurrent requests.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from lms.db.engine import Base


class StudentRow(Base):
    __tablename__ = "students"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    year: Mapped[str] = mapped_column(String(32), nullable=False)
    curriculum: Mapped[str] = mapped_column(String(32), nullable=False)
    student_type: Mapped[str] = mapped_column(String(32), nullable=False)
    guardian_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    current_week: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    # [{"week_number": int, "completed_at": iso8601, "score": int}]
    completed_weeks: Mapped[list[dict]] = mapped_column(
        JSONB, nullable=False, default=list
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class WeekRow(Base):
    __tablename__ = "weeks"
    __table_args__ = (
        UniqueConstraint(
            "week_number", "year", "curriculum", "student_type", name="uq_week_scope"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    week_number: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    year: Mapped[str] = mapped_column(String(32), nullable=False)
    curriculum: Mapped[str] = mapped_column(String(32), nullable=False)
    student_type: Mapped[str] = mapped_column(String(32), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # legacy embedded materials, pre-migration shape
    materials: Mapped[list[dict]] = mapped_column(JSONB, nullable=False, default=list)
    unlock_conditions: Mapped[dict] = mapped_column(
        JSONB, nullable=False, default=dict
    )


class WeekContentRow(Base):
    __tablename__ = "week_contents"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    week_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("weeks.id"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(
        String(16), nullable=False
    )  # homework|notes|pdf|summary
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    estimated_time: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    due_date_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    allow_late_submission: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    late_penalty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_score: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )


class HomeworkSubmissionRow(Base):
    __tablename__ = "homework_submissions"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "week_id", "material_id", name="uq_submission_material"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("students.id"), nullable=False
    )
    week_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    # WeekContent id or a legacy embedded sub-document id
    material_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    files: Mapped[list[dict]] = mapped_column(JSONB, nullable=False, default=list)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="submitted"
    )  # submitted|late|graded|returned
    is_late: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    late_penalty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    grade: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    feedback: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    notification_status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="pending"
    )  # pending|sent|failed
    notification_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    notification_message_id: Mapped[str | None] = mapped_column(
        String(128), nullable=True
    )
    notification_error: Mapped[str | None] = mapped_column(Text, nullable=True)


class StudentProgressRow(Base):
    __tablename__ = "student_progress"
    __table_args__ = (
        UniqueConstraint("student_id", "week_id", name="uq_progress_student_week"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("students.id"), nullable=False, index=True
    )
    week_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="not_started"
    )  # not_started|in_progress|completed|unlocked|locked
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_materials: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=list
    )
    is_unlocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    unlocked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    unlocked_by: Mapped[str | None] = mapped_column(
        String(16), nullable=True
    )  # auto|manual|admin
    unlock_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
