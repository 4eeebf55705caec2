from __future__ import annotations

import collections
import logging
import typing as t

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gradeflow.core.provider import TimestampProvider
from gradeflow.model import ClassID, GradeComponentType, GradeRecord, GradeSubmission, PeriodID, ReportingPeriod, \
    SnapshotRow, SubjectID, SubmissionID, SubmissionKey, SubmissionSnapshot, SubmissionStatus, UserID
from gradeflow.storage import grade as grade_storage
from gradeflow.storage import period as period_storage
from gradeflow.storage import submission as submission_storage
from gradeflow.storage import user as user_storage

from .average import subject_average
from .errors import AlreadyApproved, ConcurrencyError, InvalidTransition, MissingJustification, NotFoundError
from .validator import check_deadline, check_period_open, has_text

logger = logging.getLogger(__name__)


class SubmissionFilter(t.TypedDict, total=False):
    teacher_id: UserID
    period_id: PeriodID
    class_id: ClassID
    subject_id: SubjectID
    status: SubmissionStatus


class SubmissionManager(object):
    """A teacher's grades for one (period, class, subject) as a reviewable unit.

    The snapshot is a point-in-time copy; later grade edits do not change a
    submission until it is resubmitted.
    """

    def __init__(self, session: Session, utcnow: TimestampProvider):
        self.session = session
        self.utcnow = utcnow

    def get(self, key: SubmissionKey) -> GradeSubmission | None:
        return submission_storage.get_by_key(key, session=self.session)

    def get_by_id(self, submission_id: SubmissionID) -> GradeSubmission:
        submission = submission_storage.get(submission_id, session=self.session)
        if submission is None:
            raise NotFoundError("submission not found", submission_id=submission_id)
        return submission

    def list_for_teacher(self, filter: SubmissionFilter | None = None) -> tuple[GradeSubmission, ...]:
        return submission_storage.find(**(filter or {}), session=self.session)

    def build_snapshot(self, period_id: PeriodID, class_id: ClassID, subject_id: SubjectID) -> SubmissionSnapshot:
        """Copy the live grades for a (period, class, subject) into snapshot rows, one per student."""
        records = grade_storage.find(
            period_id=period_id, class_id=class_id, subject_id=subject_id, session=self.session
        )
        by_student: dict[UserID, list[GradeRecord]] = collections.defaultdict(list)
        for record in records:
            by_student[record.student_id].append(record)

        names = {u.user_id: u.name for u in user_storage.find(user_ids=list(by_student), session=self.session)}
        rows = [self._snapshot_row(student_id, names.get(student_id, ""), rs) for student_id, rs in by_student.items()]
        rows.sort(key=lambda r: (r.student_name, str(r.student_id)))
        return SubmissionSnapshot(rows=rows)

    def _snapshot_row(self, student_id: UserID, student_name: str, records: list[GradeRecord]) -> SnapshotRow:
        components: dict[GradeComponentType, GradeRecord] = {}
        regular: list[GradeRecord] = []
        for record in records:
            if record.component_type is GradeComponentType.Regular:
                regular.append(record)
            else:
                components[record.component_type] = record
        regular.sort(key=lambda r: r.sequence)

        def value(ct: GradeComponentType):
            record = components.get(ct)
            return record.grade_value if record else None

        latest = max(records, key=lambda r: r.updated_at)
        regular_grades = [r.grade_value for r in regular]
        midterm = value(GradeComponentType.Midterm)
        final = value(GradeComponentType.Final)
        return SnapshotRow(
            student_id=student_id,
            student_name=student_name,
            regular_grades=regular_grades,
            midterm_grade=midterm,
            final_grade=final,
            summary_grade=subject_average(regular_grades, midterm, final, value(GradeComponentType.Summary)),
            last_modified=latest.updated_at,
            modified_by=latest.updated_by or latest.created_by,
        )

    def save_draft(
        self,
        period_id: PeriodID,
        class_id: ClassID,
        subject_id: SubjectID,
        teacher_id: UserID,
        snapshot: SubmissionSnapshot,
    ) -> GradeSubmission:
        """Store a snapshot without sending it for review."""
        self._get_period(period_id)
        key = SubmissionKey(period_id=period_id, class_id=class_id, subject_id=subject_id, teacher_id=teacher_id)
        existing = self.get(key)

        if existing is None:
            try:
                submission = submission_storage.create(
                    {"key": key, "snapshot": snapshot, "status": SubmissionStatus.Draft, "submission_count": 0},
                    session=self.session,
                )
            except IntegrityError as e:
                raise ConcurrencyError("submission was created concurrently", **key.model_dump()) from e
        elif existing.status is SubmissionStatus.Draft:
            submission = self._update(existing, status=SubmissionStatus.Draft, snapshot=snapshot)
        else:
            raise InvalidTransition(
                f"a {existing.status.value} submission cannot be saved as a draft",
                submission_id=existing.submission_id,
            )

        logger.info("submission draft saved", extra={"submission_id": submission.submission_id, **key.model_dump()})
        return submission

    def submit(
        self,
        period_id: PeriodID,
        class_id: ClassID,
        subject_id: SubjectID,
        teacher_id: UserID,
        snapshot: SubmissionSnapshot,
        resubmission_reason: str | None = None,
    ) -> GradeSubmission:
        """Send a snapshot for review, creating or resubmitting as needed.

        Raises:
            AlreadyApproved: the submission was already signed off
            MissingJustification: a resubmission came without a reason
            DeadlinePassed: the period's edit deadline is behind us
        """
        period = self._get_period(period_id)
        check_period_open(period)
        now = self.utcnow()
        check_deadline(period, now, "edit")

        key = SubmissionKey(period_id=period_id, class_id=class_id, subject_id=subject_id, teacher_id=teacher_id)
        existing = self.get(key)

        if existing is None:
            try:
                submission = submission_storage.create(
                    {
                        "key": key,
                        "snapshot": snapshot,
                        "status": SubmissionStatus.Submitted,
                        "submission_count": 1,
                        "submitted_at": now,
                    },
                    session=self.session,
                )
            except IntegrityError as e:
                raise ConcurrencyError("submission was created concurrently", **key.model_dump()) from e
        else:
            match existing.status:
                case SubmissionStatus.Approved:
                    raise AlreadyApproved(
                        "an approved submission is final", submission_id=existing.submission_id
                    )
                case SubmissionStatus.Draft:
                    submission = self._update(
                        existing,
                        status=SubmissionStatus.Submitted,
                        snapshot=snapshot,
                        submission_count=existing.submission_count + 1,
                        submitted_at=now,
                    )
                case SubmissionStatus.Submitted | SubmissionStatus.Rejected:
                    if not has_text(resubmission_reason):
                        raise MissingJustification(
                            "resubmitting grades requires a reason", submission_id=existing.submission_id
                        )
                    submission = self._update(
                        existing,
                        status=SubmissionStatus.Submitted,
                        snapshot=snapshot,
                        submission_count=existing.submission_count + 1,
                        resubmission_reason=t.cast(str, resubmission_reason).strip(),
                        submitted_at=now,
                        decided_by=None,
                        decided_at=None,
                        decision_note=None,
                    )

        logger.info(
            "grades submitted",
            extra={
                "submission_id": submission.submission_id,
                "submission_count": submission.submission_count,
                "rows": len(snapshot.rows),
                **key.model_dump(),
            },
        )
        return submission

    def _get_period(self, period_id: PeriodID) -> ReportingPeriod:
        period = period_storage.get(period_id, session=self.session)
        if period is None:
            raise NotFoundError("reporting period not found", period_id=period_id)
        return period

    def _update(self, existing: GradeSubmission, **values: t.Any) -> GradeSubmission:
        updated = submission_storage.update(
            existing.submission_id,
            expected_status=existing.status,
            expected_count=existing.submission_count,
            session=self.session,
            **values,
        )
        if updated is None:
            raise ConcurrencyError(
                "submission changed while it was being written",
                submission_id=existing.submission_id,
                submission_count=existing.submission_count,
            )
        return updated
