"""View models for grade submission endpoints."""

from __future__ import annotations

import datetime

import pydantic as p

from gradeflow.model import ClassID, ClosureStatus, Decision, GradeSubmission, PeriodID, SubjectID, SubmissionID, \
    SubmissionStatus, UserID

from .grade import GradeNumber


class SnapshotRowResponse(p.BaseModel):
    student_id: UserID
    student_name: str
    regular_grades: list[GradeNumber | None]
    midterm_grade: GradeNumber | None
    final_grade: GradeNumber | None
    summary_grade: GradeNumber | None
    last_modified: datetime.datetime | None
    modified_by: UserID | None


class SnapshotResponse(p.BaseModel):
    schema_version: int
    rows: list[SnapshotRowResponse]


class SubmissionResponse(p.BaseModel):
    """A teacher's submission for one period, class and subject."""

    submission_id: SubmissionID
    period_id: PeriodID
    class_id: ClassID
    subject_id: SubjectID
    teacher_id: UserID
    status: SubmissionStatus
    submission_count: int
    resubmission_reason: str | None
    submitted_at: datetime.datetime | None
    decided_by: UserID | None
    decided_at: datetime.datetime | None
    decision_note: str | None
    snapshot: SnapshotResponse

    @classmethod
    def from_model(cls, submission: GradeSubmission) -> SubmissionResponse:
        return cls(**submission.model_dump())


class SubmissionListResponse(p.BaseModel):
    submissions: list[SubmissionResponse]
    total: int


class SubmitRequest(p.BaseModel):
    """Request body for submitting or saving a draft.

    The snapshot is always built from the grades on record at the time of the
    request.
    """

    period_id: PeriodID
    class_id: ClassID
    subject_id: SubjectID
    resubmission_reason: str | None = None


class SubmissionDecisionRequest(p.BaseModel):
    decision: Decision
    reason: str | None = None


class ClosureResponse(p.BaseModel):
    period_id: PeriodID
    class_id: ClassID
    subject_id: SubjectID
    submission_status: SubmissionStatus | None
    pending_tickets: int
    is_closed: bool

    @classmethod
    def from_model(cls, closure: ClosureStatus) -> ClosureResponse:
        return cls(**closure.model_dump(), is_closed=closure.is_closed)
