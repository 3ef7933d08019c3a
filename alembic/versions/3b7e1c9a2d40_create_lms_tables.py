"""create lms tables

Revision ID: 3b7e1c9a2d40
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b7e1c9a2d40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "students",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("year", sa.String(length=32), nullable=False),
        sa.Column("curriculum", sa.String(length=32), nullable=False),
        sa.Column("student_type", sa.String(length=32), nullable=False),
        sa.Column("guardian_phone", sa.String(length=32), nullable=True),
        sa.Column("current_week", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "completed_weeks",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "weeks",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("year", sa.String(length=32), nullable=False),
        sa.Column("curriculum", sa.String(length=32), nullable=False),
        sa.Column("student_type", sa.String(length=32), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "materials",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "unlock_conditions",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.UniqueConstraint(
            "week_number", "year", "curriculum", "student_type", name="uq_week_scope"
        ),
    )
    op.create_index("ix_weeks_week_number", "weeks", ["week_number"])

    op.create_table(
        "week_contents",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "week_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("weeks.id"),
            nullable=False,
        ),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("file_url", sa.Text(), nullable=True),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("estimated_time", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("due_date_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "allow_late_submission",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("late_penalty", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_score", sa.Integer(), nullable=False, server_default="100"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_week_contents_week_id", "week_contents", ["week_id"])

    op.create_table(
        "homework_submissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "student_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("students.id"),
            nullable=False,
        ),
        sa.Column("week_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("material_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "files",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "status", sa.String(length=16), nullable=False, server_default="submitted"
        ),
        sa.Column("is_late", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("late_penalty", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("grade", postgresql.JSONB(), nullable=True),
        sa.Column("feedback", postgresql.JSONB(), nullable=True),
        sa.Column(
            "notification_status",
            sa.String(length=16),
            nullable=False,
            server_default="pending",
        ),
        sa.Column(
            "notification_updated_at", sa.DateTime(timezone=True), nullable=True
        ),
        sa.Column("notification_message_id", sa.String(length=128), nullable=True),
        sa.Column("notification_error", sa.Text(), nullable=True),
        sa.UniqueConstraint(
            "student_id", "week_id", "material_id", name="uq_submission_material"
        ),
    )

    op.create_table(
        "student_progress",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "student_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("students.id"),
            nullable=False,
        ),
        sa.Column("week_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "status", sa.String(length=16), nullable=False, server_default="not_started"
        ),
        sa.Column("score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "completed_materials",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default=sa.text("'{}'"),
        ),
        sa.Column("is_unlocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("unlocked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("unlocked_by", sa.String(length=16), nullable=True),
        sa.Column("unlock_reason", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("student_id", "week_id", name="uq_progress_student_week"),
    )
    op.create_index(
        "ix_student_progress_student_id", "student_progress", ["student_id"]
    )
    op.create_index("ix_student_progress_week_id", "student_progress", ["week_id"])


def downgrade() -> None:
    op.drop_index("ix_student_progress_week_id", table_name="student_progress")
    op.drop_index("ix_student_progress_student_id", table_name="student_progress")
    op.drop_table("student_progress")
    op.drop_table("homework_submissions")
    op.drop_index("ix_week_contents_week_id", table_name="week_contents")
    op.drop_table("week_contents")
    op.drop_index("ix_weeks_week_number", table_name="weeks")
    op.drop_table("weeks")
    op.drop_table("students")
