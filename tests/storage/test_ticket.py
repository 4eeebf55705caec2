"""Tests for gradeflow.storage.ticket module."""

from __future__ import annotations

import decimal
import typing as t

import pytest
from sqlalchemy.orm import Session

from gradeflow.model import ChangeTicket, GradeComponentType, GradeRecord, ReportingPeriod, TicketID, TicketStatus, \
    UserRole
from gradeflow.storage import ticket as ticket_storage

from ..conftest import Clock, School

D = decimal.Decimal


@pytest.fixture
def ticket_factory(db_session: Session, clock: Clock) -> t.Callable[..., ChangeTicket]:
    def create_ticket(record: GradeRecord, new_value: D, requested_by: t.Any, **kwargs: t.Any) -> ChangeTicket:
        with db_session.begin():
            return ticket_storage.create(
                {
                    "grade_record_id": record.grade_record_id,
                    "period_id": kwargs.pop("period_id", record.period_id),
                    "old_value": record.grade_value,
                    "new_value": new_value,
                    "requested_by": requested_by,
                    "requested_at": clock(),
                    **kwargs,
                },
                session=db_session,
            )

    return create_ticket


class TestFind(object):
    """Tests for ticket_storage.find()."""

    def test_newest_first(
        self,
        db_session: Session,
        school: School,
        clock: Clock,
        grade_factory: t.Callable[..., GradeRecord],
        ticket_factory: t.Callable[..., ChangeTicket],
    ) -> None:
        """find() orders tickets by request time, newest first."""
        record = grade_factory(school.key(), 5, school.teacher.user_id)
        first = ticket_factory(record, D("6"), school.teacher.user_id)
        clock.advance(minutes=1)
        second = ticket_factory(record, D("7"), school.teacher.user_id)

        with db_session.begin():
            result = ticket_storage.find(grade_record_id=record.grade_record_id, session=db_session)

        assert [tk.ticket_id for tk in result] == [second.ticket_id, first.ticket_id]

    def test_filter_by_status(
        self,
        db_session: Session,
        school: School,
        clock: Clock,
        grade_factory: t.Callable[..., GradeRecord],
        ticket_factory: t.Callable[..., ChangeTicket],
    ) -> None:
        """find() filters on status."""
        record = grade_factory(school.key(), 5, school.teacher.user_id)
        ticket = ticket_factory(record, D("6"), school.teacher.user_id)
        with db_session.begin():
            ticket_storage.decide(
                ticket.ticket_id,
                status=TicketStatus.Approved,
                decided_by=school.admin.user_id,
                decided_at=clock(),
                session=db_session,
            )
            pending = ticket_storage.find(status=TicketStatus.Pending, session=db_session)
            approved = ticket_storage.find(status=TicketStatus.Approved, session=db_session)

        assert pending == ()
        assert [a.ticket_id for a in approved] == [ticket.ticket_id]


class TestDecide(object):
    """Tests for ticket_storage.decide()."""

    def test_decide_pending(
        self,
        db_session: Session,
        school: School,
        clock: Clock,
        grade_factory: t.Callable[..., GradeRecord],
        ticket_factory: t.Callable[..., ChangeTicket],
    ) -> None:
        """decide() moves a pending ticket to its terminal status."""
        record = grade_factory(school.key(), 5, school.teacher.user_id)
        ticket = ticket_factory(record, D("6"), school.teacher.user_id, reason="typo")

        with db_session.begin():
            decided = ticket_storage.decide(
                ticket.ticket_id,
                status=TicketStatus.Rejected,
                decided_by=school.admin.user_id,
                decided_at=clock(),
                decision_note="no evidence",
                session=db_session,
            )

        assert decided is not None
        assert decided.status is TicketStatus.Rejected
        assert decided.reason == "typo"
        assert decided.decision_note == "no evidence"

    def test_decided_ticket_returns_none(
        self,
        db_session: Session,
        school: School,
        clock: Clock,
        grade_factory: t.Callable[..., GradeRecord],
        ticket_factory: t.Callable[..., ChangeTicket],
    ) -> None:
        """decide() only transitions pending tickets."""
        record = grade_factory(school.key(), 5, school.teacher.user_id)
        ticket = ticket_factory(record, D("6"), school.teacher.user_id)

        with db_session.begin():
            ticket_storage.decide(
                ticket.ticket_id, status=TicketStatus.Approved, decided_by=school.admin.user_id,
                decided_at=clock(), session=db_session,
            )
            again = ticket_storage.decide(
                ticket.ticket_id, status=TicketStatus.Rejected, decided_by=school.admin.user_id,
                decided_at=clock(), session=db_session,
            )
            current = ticket_storage.get(ticket.ticket_id, session=db_session)

        assert again is None
        assert current is not None
        assert current.status is TicketStatus.Approved

    def test_unknown_ticket_returns_none(self, db_session: Session, school: School, clock: Clock) -> None:
        """decide() returns None when there is no such ticket."""
        with db_session.begin():
            result = ticket_storage.decide(
                TicketID(), status=TicketStatus.Approved, decided_by=school.admin.user_id,
                decided_at=clock(), session=db_session,
            )

        assert result is None


class TestPending(object):
    """Tests for ticket_storage.find_pending() and count_pending()."""

    def test_find_pending_filters(
        self,
        db_session: Session,
        school: School,
        clock: Clock,
        user_factory: t.Callable[..., t.Any],
        grade_factory: t.Callable[..., GradeRecord],
        ticket_factory: t.Callable[..., ChangeTicket],
    ) -> None:
        """find_pending() filters on requester and joins display names."""
        colleague = user_factory(name="Pham Duc Anh", role=UserRole.Teacher)
        a = grade_factory(school.key(GradeComponentType.Final, student=0), 5, school.teacher.user_id)
        b = grade_factory(school.key(GradeComponentType.Final, student=1), 5, school.teacher.user_id)
        ticket_factory(a, D("6"), school.teacher.user_id)
        clock.advance(minutes=1)
        ticket_factory(b, D("6"), colleague.user_id)

        with db_session.begin():
            everything = ticket_storage.find_pending(session=db_session)
            theirs = ticket_storage.find_pending(requested_by=colleague.user_id, session=db_session)

        assert [p.student_name for p in everything] == ["Bao Le", "Alice Pham"]
        assert len(theirs) == 1
        assert theirs[0].teacher_name == "Pham Duc Anh"
        assert theirs[0].component_type is GradeComponentType.Final
        assert theirs[0].component_label == "Final"

    def test_count_pending_includes_tickets_raised_from_other_periods(
        self,
        db_session: Session,
        school: School,
        period_factory: t.Callable[..., ReportingPeriod],
        grade_factory: t.Callable[..., GradeRecord],
        ticket_factory: t.Callable[..., ChangeTicket],
    ) -> None:
        """count_pending() counts tickets by the record's period or the ticket's period."""
        sibling = period_factory(name="Semester 1 final", semester_id=school.period.semester_id)
        record = grade_factory(school.key(), 5, school.teacher.user_id)
        ticket_factory(record, D("6"), school.teacher.user_id, period_id=sibling.period_id)

        with db_session.begin():
            by_record_period = ticket_storage.count_pending(
                period_id=school.period.period_id,
                class_id=school.schoolclass.class_id,
                subject_id=school.subject.subject_id,
                session=db_session,
            )
            by_ticket_period = ticket_storage.count_pending(
                period_id=sibling.period_id,
                class_id=school.schoolclass.class_id,
                subject_id=school.subject.subject_id,
                session=db_session,
            )

        assert by_record_period == 1
        assert by_ticket_period == 1
