from __future__ import annotations

import logging
import typing as t

from sqlalchemy.orm import Session

from gradeflow.core.provider import TimestampProvider
from gradeflow.model import ChangeTicket, ClassID, ClosureStatus, Decision, GradeSubmission, PeriodID, SubjectID, \
    SubmissionID, SubmissionStatus, TicketID, UserID
from gradeflow.storage import submission as submission_storage
from gradeflow.storage import ticket as ticket_storage

from .errors import AlreadyApproved, AlreadyDecided, ConcurrencyError, InvalidTransition, MissingJustification
from .ledger import ChangeTicketLedger
from .submission import SubmissionManager
from .validator import has_text

logger = logging.getLogger(__name__)


class ApprovalCoordinator(object):
    """Administrator decisions on change tickets and submissions."""

    def __init__(
        self,
        session: Session,
        ledger: ChangeTicketLedger,
        submissions: SubmissionManager,
        utcnow: TimestampProvider,
    ):
        self.session = session
        self.ledger = ledger
        self.submissions = submissions
        self.utcnow = utcnow

    def decide_override(
        self, ticket_id: TicketID, decision: Decision, decided_by: UserID, note: str | None = None
    ) -> ChangeTicket:
        match decision:
            case Decision.Approve:
                return self.ledger.approve(ticket_id, decided_by, note)
            case Decision.Reject:
                return self.ledger.reject(ticket_id, decided_by, note)

    def approve_submission(self, submission_id: SubmissionID, decided_by: UserID) -> GradeSubmission:
        """Sign off a submitted bundle. Approving an approved submission changes nothing."""
        submission = self.submissions.get_by_id(submission_id)
        if submission.status is SubmissionStatus.Approved:
            return submission
        if submission.status is not SubmissionStatus.Submitted:
            raise InvalidTransition(
                f"a {submission.status.value} submission cannot be approved", submission_id=submission_id
            )

        approved = self._decide(submission, SubmissionStatus.Approved, decided_by, None)
        logger.info("submission approved", extra={"submission_id": submission_id, "decided_by": decided_by})
        return approved

    def reject_submission(
        self, submission_id: SubmissionID, decided_by: UserID, reason: str | None
    ) -> GradeSubmission:
        """Send a submitted bundle back to the teacher, who must resubmit with a reason."""
        submission = self.submissions.get_by_id(submission_id)
        match submission.status:
            case SubmissionStatus.Approved:
                raise AlreadyApproved("an approved submission is final", submission_id=submission_id)
            case SubmissionStatus.Rejected:
                raise AlreadyDecided("submission has already been rejected", submission_id=submission_id)
            case SubmissionStatus.Draft:
                raise InvalidTransition("a draft submission cannot be rejected", submission_id=submission_id)
            case SubmissionStatus.Submitted:
                pass
        if not has_text(reason):
            raise MissingJustification("rejecting a submission requires a reason", submission_id=submission_id)

        rejected = self._decide(submission, SubmissionStatus.Rejected, decided_by, t.cast(str, reason).strip())
        logger.info(
            "submission rejected",
            extra={"submission_id": submission_id, "decided_by": decided_by, "reason": rejected.decision_note},
        )
        return rejected

    def closure_status(self, period_id: PeriodID, class_id: ClassID, subject_id: SubjectID) -> ClosureStatus:
        """A period is closed for a class and subject once every submission for it is approved and no
        correction touching it is still pending."""
        submissions = submission_storage.find(
            period_id=period_id, class_id=class_id, subject_id=subject_id, session=self.session
        )
        open_ = [s for s in submissions if s.status is not SubmissionStatus.Approved]
        if not submissions:
            status = None
        elif open_:
            status = open_[0].status
        else:
            status = SubmissionStatus.Approved

        pending = ticket_storage.count_pending(
            period_id=period_id, class_id=class_id, subject_id=subject_id, session=self.session
        )
        return ClosureStatus(
            period_id=period_id,
            class_id=class_id,
            subject_id=subject_id,
            submission_status=status,
            pending_tickets=pending,
        )

    def _decide(
        self,
        submission: GradeSubmission,
        status: SubmissionStatus,
        decided_by: UserID,
        note: str | None,
    ) -> GradeSubmission:
        updated = submission_storage.update(
            submission.submission_id,
            expected_status=submission.status,
            expected_count=submission.submission_count,
            status=status,
            decided_by=decided_by,
            decided_at=self.utcnow(),
            decision_note=note,
            session=self.session,
        )
        if updated is None:
            raise ConcurrencyError(
                "submission changed while it was being decided", submission_id=submission.submission_id
            )
        return updated
