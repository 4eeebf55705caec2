"""Initial schema for grade records, change tickets and submissions

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""

import typing as t

from alembic import op
from sqlalchemy import func as f
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.schema import Column, ForeignKey, UniqueConstraint
from sqlalchemy.types import Boolean, Date, DateTime, Integer, JSON, Numeric, String, Text

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None

Timestamp = DateTime(timezone=True)
Grade = Numeric(4, 2)


def upgrade() -> None:
    # Reference data
    op.create_table(
        "users",
        Column("user_id", String(22), primary_key=True),
        Column("email", String, unique=True, nullable=False),
        Column("name", String, nullable=False),
        Column("role", String, nullable=False),
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
        Column("update_time", Timestamp, server_default=f.now(), onupdate=f.now(), nullable=False),
    )

    op.create_table(
        "classes",
        Column("class_id", String(22), primary_key=True),
        Column("name", String, nullable=False),
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
        Column("update_time", Timestamp, server_default=f.now(), onupdate=f.now(), nullable=False),
    )

    op.create_table(
        "subjects",
        Column("subject_id", String(22), primary_key=True),
        Column("name", String, nullable=False),
        Column("code", String, unique=True, nullable=False),
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
        Column("update_time", Timestamp, server_default=f.now(), onupdate=f.now(), nullable=False),
    )

    op.create_table(
        "reporting_periods",
        Column("period_id", String(22), primary_key=True),
        Column("semester_id", String(22), nullable=False),
        Column("academic_year_id", String(22), nullable=False),
        Column("name", String, nullable=False),
        Column("period_type", String, nullable=False),
        Column("start_date", Date, nullable=False),
        Column("end_date", Date, nullable=False),
        Column("import_deadline", Timestamp, nullable=False),
        Column("edit_deadline", Timestamp, nullable=False),
        Column("status", String, nullable=False, server_default="open"),
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
        Column("update_time", Timestamp, server_default=f.now(), onupdate=f.now(), nullable=False),
    )

    # Grades
    op.create_table(
        "grade_records",
        Column("grade_record_id", String(22), primary_key=True),
        Column("period_id", String(22), ForeignKey("reporting_periods.period_id"), nullable=False),
        Column("student_id", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("subject_id", String(22), ForeignKey("subjects.subject_id"), nullable=False),
        Column("class_id", String(22), ForeignKey("classes.class_id"), nullable=False),
        Column("component_type", String, nullable=False),
        Column("sequence", Integer, nullable=False),
        Column("grade_value", Grade, nullable=True),
        Column("previous_grade_value", Grade, nullable=True),
        Column("is_overwrite", Boolean, nullable=False, server_default="false"),
        Column("created_by", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("updated_by", String(22), ForeignKey("users.user_id"), nullable=True),
        Column("updated_at", Timestamp, nullable=False),
        Column("version", Integer, nullable=False, server_default="1"),
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
        UniqueConstraint(
            "period_id",
            "student_id",
            "subject_id",
            "class_id",
            "component_type",
            "sequence",
            name="uq_grade_records_key",
        ),
    )

    op.create_table(
        "change_tickets",
        Column("ticket_id", String(22), primary_key=True),
        Column("grade_record_id", String(22), ForeignKey("grade_records.grade_record_id"), nullable=False),
        Column("period_id", String(22), ForeignKey("reporting_periods.period_id"), nullable=False),
        Column("old_value", Grade, nullable=True),
        Column("new_value", Grade, nullable=True),
        Column("reason", Text, nullable=True),
        Column("status", String, nullable=False, server_default="pending"),
        Column("requested_by", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("requested_at", Timestamp, nullable=False),
        Column("decided_by", String(22), ForeignKey("users.user_id"), nullable=True),
        Column("decided_at", Timestamp, nullable=True),
        Column("decision_note", Text, nullable=True),
    )
    op.create_index("ix_change_tickets_grade_record_id", "change_tickets", ["grade_record_id"])
    op.create_index("ix_change_tickets_status_requested_at", "change_tickets", ["status", "requested_at"])

    # Submissions
    op.create_table(
        "grade_submissions",
        Column("submission_id", String(22), primary_key=True),
        Column("period_id", String(22), ForeignKey("reporting_periods.period_id"), nullable=False),
        Column("class_id", String(22), ForeignKey("classes.class_id"), nullable=False),
        Column("subject_id", String(22), ForeignKey("subjects.subject_id"), nullable=False),
        Column("teacher_id", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("snapshot", JSON().with_variant(JSONB(), "postgresql"), nullable=False),
        Column("snapshot_version", Integer, nullable=False),
        Column("status", String, nullable=False),
        Column("submission_count", Integer, nullable=False, server_default="0"),
        Column("resubmission_reason", Text, nullable=True),
        Column("submitted_at", Timestamp, nullable=True),
        Column("decided_by", String(22), ForeignKey("users.user_id"), nullable=True),
        Column("decided_at", Timestamp, nullable=True),
        Column("decision_note", Text, nullable=True),
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
        Column("update_time", Timestamp, server_default=f.now(), onupdate=f.now(), nullable=False),
        UniqueConstraint("period_id", "class_id", "subject_id", "teacher_id", name="uq_grade_submissions_key"),
    )
    op.create_index("ix_grade_submissions_teacher_status", "grade_submissions", ["teacher_id", "status"])


def downgrade() -> None:
    op.drop_index("ix_grade_submissions_teacher_status", table_name="grade_submissions")
    op.drop_table("grade_submissions")
    op.drop_index("ix_change_tickets_status_requested_at", table_name="change_tickets")
    op.drop_index("ix_change_tickets_grade_record_id", table_name="change_tickets")
    op.drop_table("change_tickets")
    op.drop_table("grade_records")
    op.drop_table("reporting_periods")
    op.drop_table("subjects")
    op.drop_table("classes")
    op.drop_table("users")
