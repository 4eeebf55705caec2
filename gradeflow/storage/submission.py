from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from gradeflow.core import di
from gradeflow.lib import NotSet
from gradeflow.model import ClassID, GradeSubmission, PeriodID, SubjectID, SubmissionID, SubmissionKey, \
    SubmissionSnapshot, SubmissionStatus, UserID

from . import Session
from .table import grade_submissions


def get(
    submission_id: SubmissionID, session: Session = di.Provide["storage.persistent.session"]
) -> GradeSubmission | None:
    stmt = sqla.select(grade_submissions.__table__).where(grade_submissions.submission_id == submission_id)
    row = session.execute(stmt).mappings().one_or_none()
    return GradeSubmission(**row) if row else None


def get_by_key(
    key: SubmissionKey, session: Session = di.Provide["storage.persistent.session"]
) -> GradeSubmission | None:
    stmt = sqla.select(grade_submissions.__table__).where(
        grade_submissions.period_id == key.period_id,
        grade_submissions.class_id == key.class_id,
        grade_submissions.subject_id == key.subject_id,
        grade_submissions.teacher_id == key.teacher_id,
    )
    row = session.execute(stmt).mappings().one_or_none()
    return GradeSubmission(**row) if row else None


def find(
    *,
    teacher_id: UserID | None = None,
    period_id: PeriodID | None = None,
    class_id: ClassID | None = None,
    subject_id: SubjectID | None = None,
    status: SubmissionStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradeSubmission, ...]:
    stmt = sqla.select(grade_submissions.__table__).order_by(
        grade_submissions.submitted_at.desc(), grade_submissions.submission_id
    )
    if teacher_id is not None:
        stmt = stmt.where(grade_submissions.teacher_id == teacher_id)
    if period_id is not None:
        stmt = stmt.where(grade_submissions.period_id == period_id)
    if class_id is not None:
        stmt = stmt.where(grade_submissions.class_id == class_id)
    if subject_id is not None:
        stmt = stmt.where(grade_submissions.subject_id == subject_id)
    if status is not None:
        stmt = stmt.where(grade_submissions.status == status.value)
    rows = session.execute(stmt).mappings().all()
    return tuple(GradeSubmission(**row) for row in rows)


def create(
    params: SubmissionCreateParams, session: Session = di.Provide["storage.persistent.session"]
) -> GradeSubmission:
    """Insert a new submission.

    Raises:
        sqlalchemy.exc.IntegrityError: if a submission already exists for the key
    """
    key = params["key"]
    snapshot = params["snapshot"]
    submission = grade_submissions(
        submission_id=SubmissionID(),
        period_id=key.period_id,
        class_id=key.class_id,
        subject_id=key.subject_id,
        teacher_id=key.teacher_id,
        snapshot=snapshot.model_dump(mode="json"),
        snapshot_version=snapshot.schema_version,
        status=params["status"].value,
        submission_count=params["submission_count"],
        submitted_at=params.get("submitted_at"),
    )
    session.add(submission)
    session.flush()
    return get(submission.submission_id, session=session)  # type: ignore[return-value]


def update(
    submission_id: SubmissionID,
    *,
    expected_status: SubmissionStatus,
    expected_count: int,
    status: SubmissionStatus,
    snapshot: SubmissionSnapshot | NotSet = NotSet(),
    submission_count: int | NotSet = NotSet(),
    resubmission_reason: str | None | NotSet = NotSet(),
    submitted_at: datetime.datetime | NotSet = NotSet(),
    decided_by: UserID | None | NotSet = NotSet(),
    decided_at: datetime.datetime | None | NotSet = NotSet(),
    decision_note: str | None | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeSubmission | None:
    """Compare-and-swap update of a submission.

    The write only lands if the stored status and submission_count still equal
    the expected values.

    Returns:
        the updated submission, or None if the check failed or the submission
        does not exist
    """
    values: dict[str, t.Any] = {"status": status.value}
    if not isinstance(snapshot, NotSet):
        values["snapshot"] = snapshot.model_dump(mode="json")
        values["snapshot_version"] = snapshot.schema_version
    if not isinstance(submission_count, NotSet):
        values["submission_count"] = submission_count
    if not isinstance(resubmission_reason, NotSet):
        values["resubmission_reason"] = resubmission_reason
    if not isinstance(submitted_at, NotSet):
        values["submitted_at"] = submitted_at
    if not isinstance(decided_by, NotSet):
        values["decided_by"] = decided_by
    if not isinstance(decided_at, NotSet):
        values["decided_at"] = decided_at
    if not isinstance(decision_note, NotSet):
        values["decision_note"] = decision_note

    stmt = (
        sqla
        .update(grade_submissions)
        .where(grade_submissions.submission_id == submission_id)
        .where(grade_submissions.status == expected_status.value)
        .where(grade_submissions.submission_count == expected_count)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        return None

    session.flush()
    return get(submission_id, session=session)


class SubmissionCreateParams(t.TypedDict, total=False):
    key: t.Required[SubmissionKey]
    snapshot: t.Required[SubmissionSnapshot]
    status: t.Required[SubmissionStatus]
    submission_count: t.Required[int]
    submitted_at: datetime.datetime | None
