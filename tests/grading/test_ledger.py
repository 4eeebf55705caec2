"""Tests for gradeflow.grading.ledger."""

from __future__ import annotations

import datetime
import decimal
import typing as t

import pytest
from sqlalchemy.orm import Session

from gradeflow.grading import AlreadyDecided, ChangeTicketLedger, CrossSemesterEdit, DeadlinePassed, GradingService, \
    MissingJustification, NotFoundError, PendingCorrection, PeriodClosed, ValidationError
from gradeflow.model import GradeComponentType, GradeRecord, GradeRecordID, PeriodID, PeriodStatus, \
    ProposalKind, ReportingPeriod, TicketID, TicketStatus

from ..conftest import Clock, NOW, School

D = decimal.Decimal


@pytest.fixture
def ledger(service: GradingService) -> ChangeTicketLedger:
    return service.ledger


class TestPropose(object):
    def test_first_value_is_new_and_opens_no_ticket(
        self, db_session: Session, ledger: ChangeTicketLedger, school: School
    ) -> None:
        with db_session.begin():
            proposal = ledger.propose(school.key(), "8.25", None, school.teacher.user_id)

        assert proposal.kind is ProposalKind.New
        assert proposal.ticket is None
        assert proposal.record is not None
        assert proposal.record.grade_value == D("8.25")
        assert proposal.record.is_overwrite is False

    def test_same_value_is_noop(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        grade_factory: t.Callable[..., GradeRecord],
    ) -> None:
        record = grade_factory(school.key(), 7, school.teacher.user_id)
        with db_session.begin():
            proposal = ledger.propose(school.key(), D("7.00"), None, school.teacher.user_id)

        assert proposal.kind is ProposalKind.Noop
        assert proposal.ticket is None
        assert proposal.record is not None
        assert proposal.record.version == record.version

    def test_override_applies_value_and_opens_ticket(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        clock: Clock,
        grade_factory: t.Callable[..., GradeRecord],
    ) -> None:
        record = grade_factory(school.key(), 6, school.teacher.user_id)
        clock.advance(hours=1)
        with db_session.begin():
            proposal = ledger.propose(school.key(), 8, "marking error on question 3", school.teacher.user_id)

        assert proposal.kind is ProposalKind.Override
        assert proposal.record is not None
        assert proposal.record.grade_value == D("8")
        assert proposal.record.is_overwrite is True
        assert proposal.record.previous_grade_value == D("6")
        assert proposal.record.version == record.version + 1

        ticket = proposal.ticket
        assert ticket is not None
        assert ticket.grade_record_id == record.grade_record_id
        assert ticket.old_value == D("6")
        assert ticket.new_value == D("8")
        assert ticket.reason == "marking error on question 3"
        assert ticket.status is TicketStatus.Pending
        assert ticket.requested_by == school.teacher.user_id
        assert ticket.requested_at == clock()

    def test_regular_component_override_needs_no_reason(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        grade_factory: t.Callable[..., GradeRecord],
    ) -> None:
        key = school.key(GradeComponentType.Regular, 1)
        grade_factory(key, 5, school.teacher.user_id)
        with db_session.begin():
            proposal = ledger.propose(key, 6, "   ", school.teacher.user_id)

        assert proposal.kind is ProposalKind.Override
        assert proposal.ticket is not None
        assert proposal.ticket.reason is None

    @pytest.mark.parametrize("reason", [None, "", "  \t "])
    def test_sensitive_override_requires_reason(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        grade_factory: t.Callable[..., GradeRecord],
        reason: str | None,
    ) -> None:
        grade_factory(school.key(GradeComponentType.Final), 6, school.teacher.user_id)
        with pytest.raises(MissingJustification):
            with db_session.begin():
                ledger.propose(school.key(GradeComponentType.Final), 9, reason, school.teacher.user_id)

        with db_session.begin():
            assert ledger.store.get(school.key(GradeComponentType.Final)) == D("6")

    def test_invalid_value_rejected_before_anything_else(
        self, db_session: Session, ledger: ChangeTicketLedger, school: School
    ) -> None:
        with pytest.raises(ValidationError):
            with db_session.begin():
                ledger.propose(school.key(), 11, None, school.teacher.user_id)

    def test_correction_from_another_semester_is_refused(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        period_factory: t.Callable[..., ReportingPeriod],
        grade_factory: t.Callable[..., GradeRecord],
    ) -> None:
        later = period_factory(name="Semester 2 midterm", academic_year_id=school.period.academic_year_id)
        grade_factory(school.key(), 6, school.teacher.user_id)
        with pytest.raises(CrossSemesterEdit):
            with db_session.begin():
                ledger.propose(school.key(), 7, "late appeal", school.teacher.user_id, period_id=later.period_id)

    def test_correction_from_same_semester_period_is_allowed(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        period_factory: t.Callable[..., ReportingPeriod],
        grade_factory: t.Callable[..., GradeRecord],
    ) -> None:
        sibling = period_factory(name="Semester 1 final", semester_id=school.period.semester_id)
        grade_factory(school.key(), 6, school.teacher.user_id)
        with db_session.begin():
            proposal = ledger.propose(
                school.key(), 7, "rechecked paper", school.teacher.user_id, period_id=sibling.period_id
            )

        assert proposal.kind is ProposalKind.Override
        assert proposal.ticket is not None
        assert proposal.ticket.period_id == sibling.period_id

    def test_correction_from_open_sibling_cannot_reach_closed_record_period(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        period_factory: t.Callable[..., ReportingPeriod],
        grade_factory: t.Callable[..., GradeRecord],
    ) -> None:
        closed = period_factory(
            name="Semester 1 first test",
            semester_id=school.period.semester_id,
            import_deadline=NOW - datetime.timedelta(days=30),
            edit_deadline=NOW - datetime.timedelta(days=20),
            status=PeriodStatus.Closed,
        )
        key = school.key(period=closed)
        grade_factory(key, 6, school.teacher.user_id)

        with pytest.raises(PeriodClosed):
            with db_session.begin():
                ledger.propose(key, 9, "rechecked paper", school.teacher.user_id, period_id=school.period.period_id)

        with db_session.begin():
            assert ledger.store.get(key) == D("6")
            record = ledger.store.get_record(key)
            assert record is not None
            assert ledger.history(record.grade_record_id) == ()

    def test_correction_from_open_sibling_respects_record_edit_deadline(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        period_factory: t.Callable[..., ReportingPeriod],
        grade_factory: t.Callable[..., GradeRecord],
    ) -> None:
        expired = period_factory(
            name="Semester 1 first test",
            semester_id=school.period.semester_id,
            import_deadline=NOW - datetime.timedelta(days=30),
            edit_deadline=NOW - datetime.timedelta(days=20),
        )
        key = school.key(period=expired)
        grade_factory(key, 6, school.teacher.user_id)

        with pytest.raises(DeadlinePassed):
            with db_session.begin():
                ledger.propose(key, 9, "rechecked paper", school.teacher.user_id, period_id=school.period.period_id)

        with db_session.begin():
            assert ledger.store.get(key) == D("6")

    def test_new_entry_from_another_semester_is_refused(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        period_factory: t.Callable[..., ReportingPeriod],
    ) -> None:
        other = period_factory(name="Semester 2 midterm", status=PeriodStatus.Closed)
        key = school.key(period=other)

        with pytest.raises(CrossSemesterEdit):
            with db_session.begin():
                ledger.propose(key, 9, None, school.teacher.user_id, period_id=school.period.period_id)

        with db_session.begin():
            assert ledger.store.get_record(key) is None

    def test_new_entry_from_open_sibling_into_closed_period_is_refused(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        period_factory: t.Callable[..., ReportingPeriod],
    ) -> None:
        closed = period_factory(
            name="Semester 1 first test", semester_id=school.period.semester_id, status=PeriodStatus.Closed
        )
        key = school.key(period=closed)

        with pytest.raises(PeriodClosed):
            with db_session.begin():
                ledger.propose(key, 9, None, school.teacher.user_id, period_id=school.period.period_id)

        with db_session.begin():
            assert ledger.store.get_record(key) is None

    def test_second_correction_while_pending_is_refused(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        grade_factory: t.Callable[..., GradeRecord],
    ) -> None:
        grade_factory(school.key(), 6, school.teacher.user_id)
        with db_session.begin():
            ledger.propose(school.key(), 7, "first", school.teacher.user_id)

        with pytest.raises(PendingCorrection):
            with db_session.begin():
                ledger.propose(school.key(), 8, "second", school.teacher.user_id)

        with db_session.begin():
            assert ledger.store.get(school.key()) == D("7")

    def test_cleared_grade_with_pending_correction_refuses_new_value(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        grade_factory: t.Callable[..., GradeRecord],
    ) -> None:
        grade_factory(school.key(), 8, school.teacher.user_id)
        with db_session.begin():
            cleared = ledger.propose(school.key(), None, "absent", school.teacher.user_id)
        assert cleared.kind is ProposalKind.Override
        assert cleared.ticket is not None

        with pytest.raises(PendingCorrection):
            with db_session.begin():
                ledger.propose(school.key(), 5, None, school.teacher.user_id)

        with db_session.begin():
            ledger.reject(cleared.ticket.ticket_id, school.admin.user_id, "student sat the exam")
            record = ledger.store.get_record(school.key())
            assert record is not None
            history = ledger.history(record.grade_record_id)

        assert record.grade_value == D("8")
        assert [tk.ticket_id for tk in history] == [cleared.ticket.ticket_id]

    def test_closed_period_refuses_writes(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        period_factory: t.Callable[..., ReportingPeriod],
    ) -> None:
        closed = period_factory(name="Closed", status=PeriodStatus.Closed)
        with pytest.raises(PeriodClosed):
            with db_session.begin():
                ledger.propose(school.key(period=closed), 7, None, school.teacher.user_id)

    def test_reopened_period_accepts_writes(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        period_factory: t.Callable[..., ReportingPeriod],
    ) -> None:
        reopened = period_factory(name="Reopened", status=PeriodStatus.Reopened)
        with db_session.begin():
            proposal = ledger.propose(school.key(period=reopened), 7, None, school.teacher.user_id)

        assert proposal.kind is ProposalKind.New

    def test_new_entries_respect_import_deadline(
        self, db_session: Session, ledger: ChangeTicketLedger, school: School, clock: Clock
    ) -> None:
        clock.advance(days=11)
        with pytest.raises(DeadlinePassed):
            with db_session.begin():
                ledger.propose(school.key(), 7, None, school.teacher.user_id)

    def test_deadline_instant_still_accepted(
        self, db_session: Session, ledger: ChangeTicketLedger, school: School, clock: Clock
    ) -> None:
        clock.now = school.period.import_deadline
        with db_session.begin():
            proposal = ledger.propose(school.key(), 7, None, school.teacher.user_id)

        assert proposal.kind is ProposalKind.New

    def test_overrides_respect_edit_deadline(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        clock: Clock,
        grade_factory: t.Callable[..., GradeRecord],
    ) -> None:
        grade_factory(school.key(), 6, school.teacher.user_id)

        # past the import deadline, before the edit deadline
        clock.advance(days=15)
        with db_session.begin():
            proposal = ledger.propose(school.key(), 7, "recount", school.teacher.user_id)
        assert proposal.kind is ProposalKind.Override

        with db_session.begin():
            assert proposal.ticket is not None
            ledger.approve(proposal.ticket.ticket_id, school.admin.user_id)

        clock.advance(days=6)
        with pytest.raises(DeadlinePassed):
            with db_session.begin():
                ledger.propose(school.key(), 8, "recount again", school.teacher.user_id)

    def test_unknown_period_raises_not_found(
        self, db_session: Session, ledger: ChangeTicketLedger, school: School
    ) -> None:
        key = school.key().model_copy(update={"period_id": PeriodID()})
        with pytest.raises(NotFoundError):
            with db_session.begin():
                ledger.propose(key, 7, None, school.teacher.user_id)


class TestDecide(object):
    @pytest.fixture
    def ticket_id(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        grade_factory: t.Callable[..., GradeRecord],
    ) -> TicketID:
        grade_factory(school.key(), 6, school.teacher.user_id)
        with db_session.begin():
            proposal = ledger.propose(school.key(), 9, "paper was misgraded", school.teacher.user_id)
        assert proposal.ticket is not None
        return proposal.ticket.ticket_id

    def test_approve_keeps_new_value(
        self, db_session: Session, ledger: ChangeTicketLedger, school: School, clock: Clock, ticket_id: TicketID
    ) -> None:
        clock.advance(hours=2)
        with db_session.begin():
            ticket = ledger.approve(ticket_id, school.admin.user_id, "confirmed with department")
            record = ledger.store.get_record(school.key())

        assert ticket.status is TicketStatus.Approved
        assert ticket.decided_by == school.admin.user_id
        assert ticket.decided_at == clock()
        assert ticket.decision_note == "confirmed with department"
        assert record is not None
        assert record.grade_value == D("9")
        assert record.is_overwrite is True

    def test_reject_reverts_value(
        self, db_session: Session, ledger: ChangeTicketLedger, school: School, ticket_id: TicketID
    ) -> None:
        with db_session.begin():
            ticket = ledger.reject(ticket_id, school.admin.user_id, "  no evidence provided ")
            record = ledger.store.get_record(school.key())

        assert ticket.status is TicketStatus.Rejected
        assert ticket.decision_note == "no evidence provided"
        assert record is not None
        assert record.grade_value == D("6")
        assert record.is_overwrite is False
        assert record.previous_grade_value is None

    def test_reject_after_approved_correction_restores_its_flags(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        clock: Clock,
        ticket_id: TicketID,
    ) -> None:
        with db_session.begin():
            ledger.approve(ticket_id, school.admin.user_id)

        clock.advance(hours=1)
        with db_session.begin():
            second = ledger.propose(school.key(), 10, "bonus question", school.teacher.user_id)
        assert second.ticket is not None

        with db_session.begin():
            ledger.reject(second.ticket.ticket_id, school.admin.user_id, "bonus not allowed")
            record = ledger.store.get_record(school.key())

        assert record is not None
        assert record.grade_value == D("9")
        assert record.is_overwrite is True
        assert record.previous_grade_value == D("6")

    def test_reject_restores_most_recently_decided_correction(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        clock: Clock,
        grade_factory: t.Callable[..., GradeRecord],
    ) -> None:
        grade_factory(school.key(), 6, school.teacher.user_id)

        # both corrections are requested at the same instant and told apart only by decision time
        clock.now = NOW
        with db_session.begin():
            first = ledger.propose(school.key(), 7, "missed page", school.teacher.user_id)
        assert first.ticket is not None
        clock.advance(minutes=1)
        with db_session.begin():
            ledger.approve(first.ticket.ticket_id, school.admin.user_id)

        clock.now = NOW
        with db_session.begin():
            second = ledger.propose(school.key(), 8, "missed another page", school.teacher.user_id)
        assert second.ticket is not None
        clock.now = NOW + datetime.timedelta(minutes=2)
        with db_session.begin():
            ledger.approve(second.ticket.ticket_id, school.admin.user_id)

        with db_session.begin():
            third = ledger.propose(school.key(), 9, "bonus question", school.teacher.user_id)
        assert third.ticket is not None
        with db_session.begin():
            ledger.reject(third.ticket.ticket_id, school.admin.user_id, "bonus not allowed")
            record = ledger.store.get_record(school.key())

        assert record is not None
        assert record.grade_value == D("8")
        assert record.is_overwrite is True
        assert record.previous_grade_value == D("7")

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reject_requires_reason(
        self, db_session: Session, ledger: ChangeTicketLedger, school: School, ticket_id: TicketID, reason: str | None
    ) -> None:
        with pytest.raises(MissingJustification):
            with db_session.begin():
                ledger.reject(ticket_id, school.admin.user_id, reason)

        with db_session.begin():
            assert ledger.get(ticket_id).status is TicketStatus.Pending
            assert ledger.store.get(school.key()) == D("9")

    def test_decided_ticket_cannot_be_decided_again(
        self, db_session: Session, ledger: ChangeTicketLedger, school: School, ticket_id: TicketID
    ) -> None:
        with db_session.begin():
            ledger.approve(ticket_id, school.admin.user_id)

        with pytest.raises(AlreadyDecided):
            with db_session.begin():
                ledger.approve(ticket_id, school.admin.user_id)
        with pytest.raises(AlreadyDecided):
            with db_session.begin():
                ledger.reject(ticket_id, school.admin.user_id, "changed my mind")

    def test_unknown_ticket_raises_not_found(
        self, db_session: Session, ledger: ChangeTicketLedger, school: School
    ) -> None:
        with pytest.raises(NotFoundError):
            with db_session.begin():
                ledger.approve(TicketID(), school.admin.user_id)

    def test_new_correction_allowed_once_decided(
        self, db_session: Session, ledger: ChangeTicketLedger, school: School, clock: Clock, ticket_id: TicketID
    ) -> None:
        with db_session.begin():
            ledger.reject(ticket_id, school.admin.user_id, "wrong student")

        clock.advance(minutes=5)
        with db_session.begin():
            proposal = ledger.propose(school.key(), D("6.5"), "partial credit", school.teacher.user_id)

        assert proposal.ticket is not None
        assert proposal.ticket.old_value == D("6")


class TestQueries(object):
    def test_history_is_newest_first(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        clock: Clock,
        grade_factory: t.Callable[..., GradeRecord],
    ) -> None:
        record = grade_factory(school.key(), 5, school.teacher.user_id)
        values = [D("6"), D("7"), D("8")]
        for value in values:
            clock.advance(minutes=10)
            with db_session.begin():
                proposal = ledger.propose(school.key(), value, "regrade", school.teacher.user_id)
                assert proposal.ticket is not None
                ledger.approve(proposal.ticket.ticket_id, school.admin.user_id)

        with db_session.begin():
            history = ledger.history(record.grade_record_id)

        assert [h.new_value for h in history] == list(reversed(values))
        assert [h.old_value for h in history] == [D("7"), D("6"), D("5")]

    def test_history_of_unknown_record(self, db_session: Session, ledger: ChangeTicketLedger) -> None:
        with pytest.raises(NotFoundError):
            with db_session.begin():
                ledger.history(GradeRecordID())

    def test_list_pending_joins_display_data(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        grade_factory: t.Callable[..., GradeRecord],
    ) -> None:
        key = school.key(GradeComponentType.Regular, 2, student=1)
        grade_factory(key, 4, school.teacher.user_id)
        with db_session.begin():
            ledger.propose(key, 5, None, school.teacher.user_id)
            pending = ledger.list_pending({"class_id": school.schoolclass.class_id})

        assert len(pending) == 1
        item = pending[0]
        assert item.student_name == "Bao Le"
        assert item.subject_name == school.subject.name
        assert item.class_name == school.schoolclass.name
        assert item.teacher_name == school.teacher.name
        assert item.component_label == "Regular assessment 2"

    def test_list_pending_excludes_decided(
        self,
        db_session: Session,
        ledger: ChangeTicketLedger,
        school: School,
        clock: Clock,
        grade_factory: t.Callable[..., GradeRecord],
    ) -> None:
        grade_factory(school.key(student=0), 4, school.teacher.user_id)
        grade_factory(school.key(student=1), 4, school.teacher.user_id)
        with db_session.begin():
            first = ledger.propose(school.key(student=0), 5, "a", school.teacher.user_id)
        clock.advance(minutes=1)
        with db_session.begin():
            ledger.propose(school.key(student=1), 6, "b", school.teacher.user_id)
        with db_session.begin():
            assert first.ticket is not None
            ledger.approve(first.ticket.ticket_id, school.admin.user_id)
            pending = ledger.list_pending()

        assert [p.student_name for p in pending] == ["Bao Le"]
        assert pending[0].requested_at == NOW + datetime.timedelta(minutes=1)
