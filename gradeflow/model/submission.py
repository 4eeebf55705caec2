from __future__ import annotations

import datetime
import enum
import typing as t

import pydantic as p

from .base import BaseModel, WithDecision, WithTimestamps
from .grade import GradeValue
from .id import ClassID, PeriodID, SubjectID, SubmissionID, UserID


class SubmissionStatus(enum.Enum):
    Draft = "draft"
    Submitted = "submitted"
    Approved = "approved"
    Rejected = "rejected"


class SnapshotRow(BaseModel):
    student_id: UserID
    student_name: str
    regular_grades: list[GradeValue | None] = []
    midterm_grade: GradeValue | None = None
    final_grade: GradeValue | None = None
    summary_grade: GradeValue | None = None
    last_modified: datetime.datetime | None = None
    modified_by: UserID | None = None


class SubmissionSnapshotV1(BaseModel):
    schema_version: t.Literal[1] = 1
    rows: list[SnapshotRow] = []


SubmissionSnapshot = SubmissionSnapshotV1
CurrentSnapshotVersion: t.Final[int] = 1

_snapshot_adapters: dict[int, p.TypeAdapter[t.Any]] = {
    1: p.TypeAdapter(SubmissionSnapshotV1),
}


def parse_snapshot(payload: dict[str, t.Any] | SubmissionSnapshot) -> SubmissionSnapshot:
    """Parse a stored snapshot payload, dispatching on its schema version.

    Payloads written before versioning was introduced carry no
    ``schema_version`` and are read as version 1.
    """
    if isinstance(payload, SubmissionSnapshotV1):
        return payload
    version = payload.get("schema_version", 1)
    adapter = _snapshot_adapters.get(version)
    if adapter is None:
        raise ValueError(f"unsupported snapshot schema version: {version!r}")
    return adapter.validate_python(payload)


class GradeSubmission(WithTimestamps, WithDecision):
    submission_id: SubmissionID
    period_id: PeriodID
    class_id: ClassID
    subject_id: SubjectID
    teacher_id: UserID

    snapshot: SubmissionSnapshot = SubmissionSnapshotV1()
    status: SubmissionStatus = SubmissionStatus.Draft
    submission_count: int = 0
    resubmission_reason: str | None = None
    submitted_at: datetime.datetime | None = None

    @p.field_validator("snapshot", mode="before")
    @classmethod
    def validate_snapshot(cls, v: t.Any) -> t.Any:
        if isinstance(v, dict):
            return parse_snapshot(t.cast(dict[str, t.Any], v))
        return v


class SubmissionKey(BaseModel):
    model_config = p.ConfigDict(frozen=True)

    period_id: PeriodID
    class_id: ClassID
    subject_id: SubjectID
    teacher_id: UserID


class ClosureStatus(BaseModel):
    """Whether a period is closed for one class and subject."""

    period_id: PeriodID
    class_id: ClassID
    subject_id: SubjectID
    submission_status: SubmissionStatus | None
    pending_tickets: int

    @property
    def is_closed(self) -> bool:
        return self.submission_status is SubmissionStatus.Approved and self.pending_tickets == 0
