import datetime
import decimal
import typing as t

from sqlalchemy import ForeignKey, func, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, MappedAsDataclass
from sqlalchemy.types import JSON, Numeric

from gradeflow.model import AcademicYearID, ClassID, GradeRecordID, PeriodID, SemesterID, SubjectID, SubmissionID, \
    TicketID, UserID

from .type import ShortUUIDKeyType, TZDateTime

# grades live in 0.00 - 10.00
GradeNumeric = Numeric(4, 2)


class base(MappedAsDataclass, DeclarativeBase):
    type_annotation_map = {
        UserID: ShortUUIDKeyType(UserID),
        ClassID: ShortUUIDKeyType(ClassID),
        SubjectID: ShortUUIDKeyType(SubjectID),
        SemesterID: ShortUUIDKeyType(SemesterID),
        AcademicYearID: ShortUUIDKeyType(AcademicYearID),
        PeriodID: ShortUUIDKeyType(PeriodID),
        GradeRecordID: ShortUUIDKeyType(GradeRecordID),
        TicketID: ShortUUIDKeyType(TicketID),
        SubmissionID: ShortUUIDKeyType(SubmissionID),
        datetime.datetime: TZDateTime(),
        decimal.Decimal: GradeNumeric,
        dict[str, t.Any]: JSON().with_variant(JSONB(), "postgresql"),
    }


# Reference data


class users(base):
    __tablename__ = "users"

    user_id: Mapped[UserID] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(unique=True)
    name: Mapped[str]
    role: Mapped[str]
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class classes(base):
    __tablename__ = "classes"

    class_id: Mapped[ClassID] = mapped_column(primary_key=True)
    name: Mapped[str]
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class subjects(base):
    __tablename__ = "subjects"

    subject_id: Mapped[SubjectID] = mapped_column(primary_key=True)
    name: Mapped[str]
    code: Mapped[str] = mapped_column(unique=True)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class reporting_periods(base):
    __tablename__ = "reporting_periods"

    period_id: Mapped[PeriodID] = mapped_column(primary_key=True)
    semester_id: Mapped[SemesterID]
    academic_year_id: Mapped[AcademicYearID]
    name: Mapped[str]
    period_type: Mapped[str]
    start_date: Mapped[datetime.date]
    end_date: Mapped[datetime.date]
    import_deadline: Mapped[datetime.datetime]
    edit_deadline: Mapped[datetime.datetime]
    status: Mapped[str] = mapped_column(default="open")
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


# Grades


class grade_records(base):
    __tablename__ = "grade_records"
    __table_args__ = (
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

    grade_record_id: Mapped[GradeRecordID] = mapped_column(primary_key=True)
    period_id: Mapped[PeriodID] = mapped_column(ForeignKey("reporting_periods.period_id"))
    student_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    subject_id: Mapped[SubjectID] = mapped_column(ForeignKey("subjects.subject_id"))
    class_id: Mapped[ClassID] = mapped_column(ForeignKey("classes.class_id"))
    component_type: Mapped[str]
    sequence: Mapped[int]
    grade_value: Mapped[decimal.Decimal | None]
    created_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    updated_at: Mapped[datetime.datetime]
    previous_grade_value: Mapped[decimal.Decimal | None] = mapped_column(default=None)
    is_overwrite: Mapped[bool] = mapped_column(default=False)
    updated_by: Mapped[UserID | None] = mapped_column(ForeignKey("users.user_id"), default=None)
    version: Mapped[int] = mapped_column(default=1)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())


class change_tickets(base):
    __tablename__ = "change_tickets"
    __table_args__ = (
        Index("ix_change_tickets_grade_record_id", "grade_record_id"),
        Index("ix_change_tickets_status_requested_at", "status", "requested_at"),
    )

    ticket_id: Mapped[TicketID] = mapped_column(primary_key=True)
    grade_record_id: Mapped[GradeRecordID] = mapped_column(ForeignKey("grade_records.grade_record_id"))
    period_id: Mapped[PeriodID] = mapped_column(ForeignKey("reporting_periods.period_id"))
    old_value: Mapped[decimal.Decimal | None]
    new_value: Mapped[decimal.Decimal | None]
    requested_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    requested_at: Mapped[datetime.datetime]
    reason: Mapped[str | None] = mapped_column(default=None)
    status: Mapped[str] = mapped_column(default="pending")
    decided_by: Mapped[UserID | None] = mapped_column(ForeignKey("users.user_id"), default=None)
    decided_at: Mapped[datetime.datetime | None] = mapped_column(default=None)
    decision_note: Mapped[str | None] = mapped_column(default=None)


# Submissions


class grade_submissions(base):
    __tablename__ = "grade_submissions"
    __table_args__ = (
        UniqueConstraint("period_id", "class_id", "subject_id", "teacher_id", name="uq_grade_submissions_key"),
        Index("ix_grade_submissions_teacher_status", "teacher_id", "status"),
    )

    submission_id: Mapped[SubmissionID] = mapped_column(primary_key=True)
    period_id: Mapped[PeriodID] = mapped_column(ForeignKey("reporting_periods.period_id"))
    class_id: Mapped[ClassID] = mapped_column(ForeignKey("classes.class_id"))
    subject_id: Mapped[SubjectID] = mapped_column(ForeignKey("subjects.subject_id"))
    teacher_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    snapshot: Mapped[dict[str, t.Any]]
    snapshot_version: Mapped[int]
    status: Mapped[str]
    submission_count: Mapped[int] = mapped_column(default=0)
    resubmission_reason: Mapped[str | None] = mapped_column(default=None)
    submitted_at: Mapped[datetime.datetime | None] = mapped_column(default=None)
    decided_by: Mapped[UserID | None] = mapped_column(ForeignKey("users.user_id"), default=None)
    decided_at: Mapped[datetime.datetime | None] = mapped_column(default=None)
    decision_note: Mapped[str | None] = mapped_column(default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())
