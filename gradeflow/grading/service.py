from __future__ import annotations

import logging
import typing as t

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gradeflow.core.provider import TimestampProvider, utcnow
from gradeflow.model import Actor, ChangeTicket, ClassID, ClosureStatus, Decision, GradeEntry, GradeKey, \
    GradeRecordID, GradeSubmission, PendingTicket, PeriodID, Proposal, SubjectID, SubmissionID, SubmissionSnapshot, \
    TicketID, UserRole

from .approval import ApprovalCoordinator
from .errors import GradeflowError, InternalError, PermissionDenied
from .ledger import ChangeTicketLedger, PendingFilter
from .result import Result
from .store import GradeStore
from .submission import SubmissionFilter, SubmissionManager

logger = logging.getLogger(__name__)

T = t.TypeVar("T")


class GradingService(object):
    """Entry point for every grading operation.

    Each call checks the actor's role, runs in its own transaction and
    returns a ``Result``; nothing raised by the components escapes.
    """

    def __init__(self, session: Session, utcnow: TimestampProvider = utcnow):
        self.session = session
        self.utcnow = utcnow
        self.store = GradeStore(session, utcnow)
        self.ledger = ChangeTicketLedger(session, self.store, utcnow)
        self.submissions = SubmissionManager(session, utcnow)
        self.approvals = ApprovalCoordinator(session, self.ledger, self.submissions, utcnow)

    # corrections

    def propose_override(
        self,
        actor: Actor,
        key: GradeKey,
        new_value: t.Any,
        reason: str | None = None,
        period_id: PeriodID | None = None,
    ) -> Result[Proposal]:
        return self._run(
            "propose_override",
            actor,
            (UserRole.Teacher,),
            lambda: self.ledger.propose(key, new_value, reason, actor.actor_id, period_id=period_id),
            grade_key=key.model_dump_json(),
        )

    def import_grades(
        self,
        actor: Actor,
        period_id: PeriodID,
        class_id: ClassID,
        subject_id: SubjectID,
        entries: t.Sequence[GradeEntry],
    ) -> Result[list[Proposal]]:
        """Enter a batch of grades for one (period, class, subject); one bad row fails the batch."""

        def run() -> list[Proposal]:
            proposals: list[Proposal] = []
            for entry in entries:
                key = GradeKey(
                    period_id=period_id,
                    student_id=entry.student_id,
                    subject_id=subject_id,
                    class_id=class_id,
                    component_type=entry.component_type,
                    sequence=entry.sequence,
                )
                proposals.append(self.ledger.propose(key, entry.grade_value, entry.reason, actor.actor_id))
            return proposals

        return self._run(
            "import_grades", actor, (UserRole.Teacher,), run, period_id=period_id, class_id=class_id, rows=len(entries)
        )

    def list_pending_overrides(
        self, actor: Actor, filter: PendingFilter | None = None
    ) -> Result[tuple[PendingTicket, ...]]:
        """Administrators see every pending correction, teachers only their own."""
        filter = PendingFilter(**(filter or {}))
        if actor.role is UserRole.Teacher:
            filter["requested_by"] = actor.actor_id
        return self._run(
            "list_pending_overrides",
            actor,
            (UserRole.Admin, UserRole.Teacher),
            lambda: self.ledger.list_pending(filter),
        )

    def decide_override(
        self, actor: Actor, ticket_id: TicketID, decision: Decision, note: str | None = None
    ) -> Result[ChangeTicket]:
        return self._run(
            "decide_override",
            actor,
            (UserRole.Admin,),
            lambda: self.approvals.decide_override(ticket_id, decision, actor.actor_id, note),
            ticket_id=ticket_id,
            decision=decision.value,
        )

    def grade_history(self, actor: Actor, grade_record_id: GradeRecordID) -> Result[tuple[ChangeTicket, ...]]:
        return self._run(
            "grade_history",
            actor,
            (UserRole.Admin, UserRole.Teacher),
            lambda: self.ledger.history(grade_record_id),
            grade_record_id=grade_record_id,
        )

    # submissions

    def submit_grades(
        self,
        actor: Actor,
        period_id: PeriodID,
        class_id: ClassID,
        subject_id: SubjectID,
        snapshot: SubmissionSnapshot | None = None,
        resubmission_reason: str | None = None,
    ) -> Result[GradeSubmission]:
        """Submit the actor's grades for review; without a snapshot, one is built from the live grades."""

        def run() -> GradeSubmission:
            snap = snapshot
            if snap is None:
                snap = self.submissions.build_snapshot(period_id, class_id, subject_id)
            return self.submissions.submit(
                period_id, class_id, subject_id, actor.actor_id, snap, resubmission_reason=resubmission_reason
            )

        return self._run(
            "submit_grades",
            actor,
            (UserRole.Teacher,),
            run,
            period_id=period_id,
            class_id=class_id,
            subject_id=subject_id,
        )

    def save_draft(
        self,
        actor: Actor,
        period_id: PeriodID,
        class_id: ClassID,
        subject_id: SubjectID,
        snapshot: SubmissionSnapshot | None = None,
    ) -> Result[GradeSubmission]:
        def run() -> GradeSubmission:
            snap = snapshot
            if snap is None:
                snap = self.submissions.build_snapshot(period_id, class_id, subject_id)
            return self.submissions.save_draft(period_id, class_id, subject_id, actor.actor_id, snap)

        return self._run("save_draft", actor, (UserRole.Teacher,), run, period_id=period_id)

    def decide_submission(
        self, actor: Actor, submission_id: SubmissionID, decision: Decision, reason: str | None = None
    ) -> Result[GradeSubmission]:
        def run() -> GradeSubmission:
            match decision:
                case Decision.Approve:
                    return self.approvals.approve_submission(submission_id, actor.actor_id)
                case Decision.Reject:
                    return self.approvals.reject_submission(submission_id, actor.actor_id, reason)

        return self._run(
            "decide_submission",
            actor,
            (UserRole.Admin,),
            run,
            submission_id=submission_id,
            decision=decision.value,
        )

    def list_submissions(
        self, actor: Actor, filter: SubmissionFilter | None = None
    ) -> Result[tuple[GradeSubmission, ...]]:
        """Administrators see every submission, teachers only their own."""
        filter = SubmissionFilter(**(filter or {}))
        if actor.role is UserRole.Teacher:
            filter["teacher_id"] = actor.actor_id
        return self._run(
            "list_submissions",
            actor,
            (UserRole.Admin, UserRole.Teacher),
            lambda: self.submissions.list_for_teacher(filter),
        )

    def closure_status(
        self, actor: Actor, period_id: PeriodID, class_id: ClassID, subject_id: SubjectID
    ) -> Result[ClosureStatus]:
        return self._run(
            "closure_status",
            actor,
            (UserRole.Admin, UserRole.Teacher),
            lambda: self.approvals.closure_status(period_id, class_id, subject_id),
        )

    def _run(
        self,
        operation: str,
        actor: Actor,
        roles: tuple[UserRole, ...],
        fn: t.Callable[[], T],
        **context: t.Any,
    ) -> Result[T]:
        if actor.role not in roles:
            e = PermissionDenied(
                f"{actor.role.value} may not perform {operation}", actor_id=actor.actor_id, role=actor.role.value
            )
            logger.warning("permission denied", extra={"operation": operation, "actor_id": actor.actor_id})
            return Result.fail(e)

        try:
            with self.session.begin():
                value = fn()
        except GradeflowError as e:
            logger.info(
                "grading operation refused",
                extra={"operation": operation, "actor_id": actor.actor_id, "code": e.code, **context},
            )
            return Result.fail(e)
        except SQLAlchemyError:
            logger.exception(
                "unexpected storage failure",
                extra={"operation": operation, "actor_id": actor.actor_id, **context},
            )
            return Result.fail(InternalError("an unexpected storage error occurred", operation=operation))
        return Result.ok(value)
