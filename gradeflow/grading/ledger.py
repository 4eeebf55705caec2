from __future__ import annotations

import logging
import typing as t

from sqlalchemy.orm import Session

from gradeflow.core.provider import TimestampProvider
from gradeflow.model import ChangeTicket, ClassID, GradeKey, GradeRecordID, PendingTicket, PeriodID, Proposal, \
    ProposalKind, ReportingPeriod, SubjectID, TicketID, TicketStatus, UserID
from gradeflow.storage import period as period_storage
from gradeflow.storage import ticket as ticket_storage

from .errors import AlreadyDecided, ConcurrencyError, MissingJustification, NotFoundError, PendingCorrection
from .store import GradeStore, WriteMeta
from .validator import check_deadline, check_grade_value, check_period_open, check_same_semester, classify, \
    DeadlineKind, has_text

logger = logging.getLogger(__name__)


class PendingFilter(t.TypedDict, total=False):
    period_id: PeriodID
    class_id: ClassID
    subject_id: SubjectID
    requested_by: UserID


class ChangeTicketLedger(object):
    """Audit trail of corrections to recorded grades.

    Corrections are applied immediately and a pending ticket is opened
    alongside; approving the ticket leaves the value in place, rejecting it
    puts the old value back.
    """

    def __init__(self, session: Session, store: GradeStore, utcnow: TimestampProvider):
        self.session = session
        self.store = store
        self.utcnow = utcnow

    def get(self, ticket_id: TicketID) -> ChangeTicket:
        ticket = ticket_storage.get(ticket_id, session=self.session)
        if ticket is None:
            raise NotFoundError("change ticket not found", ticket_id=ticket_id)
        return ticket

    def get_period(self, period_id: PeriodID) -> ReportingPeriod:
        period = period_storage.get(period_id, session=self.session)
        if period is None:
            raise NotFoundError("reporting period not found", period_id=period_id)
        return period

    def propose(
        self,
        key: GradeKey,
        new_value: t.Any,
        reason: str | None,
        requested_by: UserID,
        period_id: PeriodID | None = None,
    ) -> Proposal:
        """Propose ``new_value`` for the record at ``key``.

        ``period_id`` is the period the teacher is working in; it defaults to
        the record's own period.
        """
        new_value = check_grade_value(new_value)
        record_period = self.get_period(key.period_id)
        period = record_period if period_id in (None, key.period_id) else self.get_period(t.cast(PeriodID, period_id))

        existing = self.store.get_record(key)
        kind, _ = classify(existing, new_value, key.component_type, period, record_period, reason)

        if kind is ProposalKind.Noop:
            return Proposal(kind=kind, record=existing)
        if kind is ProposalKind.New and period.period_id != record_period.period_id:
            check_same_semester(record_period, period)

        # a cleared grade still has its record, and its pending ticket
        if existing is not None:
            pending = ticket_storage.find(
                grade_record_id=existing.grade_record_id, status=TicketStatus.Pending, session=self.session
            )
            if pending:
                raise PendingCorrection(
                    "this grade already has a correction awaiting review",
                    grade_record_id=existing.grade_record_id,
                    ticket_id=pending[0].ticket_id,
                )

        # both the period being worked in and the one owning the record must accept the write
        now = self.utcnow()
        deadline_kind: DeadlineKind = "import" if kind is ProposalKind.New else "edit"
        for checked in {record_period.period_id: record_period, period.period_id: period}.values():
            check_period_open(checked)
            check_deadline(checked, now, deadline_kind)

        if kind is ProposalKind.New:
            self.store.upsert(key, new_value, WriteMeta(actor_id=requested_by))
            record = self.store.get_record(key)
            logger.info(
                "grade entered",
                extra={
                    "grade_record_id": record.grade_record_id if record else None,
                    "component_type": key.component_type.value,
                    "value": new_value,
                    "requested_by": requested_by,
                },
            )
            return Proposal(kind=kind, record=record)

        assert existing is not None
        ticket = ticket_storage.create(
            {
                "grade_record_id": existing.grade_record_id,
                "period_id": period.period_id,
                "old_value": existing.grade_value,
                "new_value": new_value,
                "reason": reason.strip() if reason and reason.strip() else None,
                "requested_by": requested_by,
                "requested_at": now,
            },
            session=self.session,
        )
        self.store.upsert(
            key,
            new_value,
            WriteMeta(
                actor_id=requested_by,
                is_overwrite=True,
                previous_grade_value=existing.grade_value,
                expected_version=existing.version,
            ),
        )
        record = self.store.get_by_id(existing.grade_record_id)
        logger.info(
            "grade correction proposed",
            extra={
                "ticket_id": ticket.ticket_id,
                "grade_record_id": existing.grade_record_id,
                "old_value": existing.grade_value,
                "new_value": new_value,
                "requested_by": requested_by,
            },
        )
        return Proposal(kind=kind, record=record, ticket=ticket)

    def approve(self, ticket_id: TicketID, decided_by: UserID, note: str | None = None) -> ChangeTicket:
        """Accept a pending correction. The grade itself is already live and is not touched."""
        ticket = self.get(ticket_id)
        if ticket.is_decided:
            raise AlreadyDecided("change ticket has already been decided", ticket_id=ticket_id)

        decided = self._decide(ticket, TicketStatus.Approved, decided_by, note)
        logger.info(
            "grade correction approved",
            extra={"ticket_id": ticket_id, "grade_record_id": ticket.grade_record_id, "decided_by": decided_by},
        )
        return decided

    def reject(self, ticket_id: TicketID, decided_by: UserID, reason: str | None) -> ChangeTicket:
        """Refuse a pending correction and put the grade back to the ticket's old value."""
        ticket = self.get(ticket_id)
        if ticket.is_decided:
            raise AlreadyDecided("change ticket has already been decided", ticket_id=ticket_id)
        if not has_text(reason):
            raise MissingJustification("rejecting a correction requires a reason", ticket_id=ticket_id)

        decided = self._decide(ticket, TicketStatus.Rejected, decided_by, t.cast(str, reason).strip())

        # the record goes back to how it looked before this correction, which
        # may itself have been an earlier approved correction: the last one decided
        approved = ticket_storage.find(
            grade_record_id=ticket.grade_record_id, status=TicketStatus.Approved, session=self.session
        )
        prior = max(approved, key=lambda tk: (tk.decided_at or tk.requested_at, tk.requested_at), default=None)
        self.store.restore(
            ticket.grade_record_id,
            ticket.old_value,
            WriteMeta(
                actor_id=decided_by,
                is_overwrite=prior is not None,
                previous_grade_value=prior.old_value if prior else None,
            ),
        )
        logger.info(
            "grade correction rejected, value reverted",
            extra={
                "ticket_id": ticket_id,
                "grade_record_id": ticket.grade_record_id,
                "reverted_to": ticket.old_value,
                "discarded": ticket.new_value,
                "decided_by": decided_by,
            },
        )
        return decided

    def list_pending(self, filter: PendingFilter | None = None) -> tuple[PendingTicket, ...]:
        return ticket_storage.find_pending(**(filter or {}), session=self.session)

    def history(self, grade_record_id: GradeRecordID) -> tuple[ChangeTicket, ...]:
        """Every ticket ever raised against a record, newest first."""
        if self.store.get_by_id(grade_record_id) is None:
            raise NotFoundError("grade record not found", grade_record_id=grade_record_id)
        return ticket_storage.find(grade_record_id=grade_record_id, session=self.session)

    def _decide(
        self,
        ticket: ChangeTicket,
        status: t.Literal[TicketStatus.Approved, TicketStatus.Rejected],
        decided_by: UserID,
        note: str | None,
    ) -> ChangeTicket:
        decided = ticket_storage.decide(
            ticket.ticket_id,
            status=status,
            decided_by=decided_by,
            decided_at=self.utcnow(),
            decision_note=note,
            session=self.session,
        )
        if decided is None:
            current = ticket_storage.get(ticket.ticket_id, session=self.session)
            if current is not None and current.is_decided:
                raise AlreadyDecided("change ticket has already been decided", ticket_id=ticket.ticket_id)
            raise ConcurrencyError("change ticket changed while it was being decided", ticket_id=ticket.ticket_id)
        return decided
