from __future__ import annotations

import datetime
import decimal
import typing as t

import sqlalchemy as sqla
from sqlalchemy.orm import aliased

from gradeflow.core import di
from gradeflow.model import ChangeTicket, ClassID, GradeRecordID, PendingTicket, PeriodID, SubjectID, TicketID, \
    TicketStatus, UserID

from . import Session
from .table import change_tickets, classes, grade_records, subjects, users


def get(ticket_id: TicketID, session: Session = di.Provide["storage.persistent.session"]) -> ChangeTicket | None:
    stmt = sqla.select(change_tickets.__table__).where(change_tickets.ticket_id == ticket_id)
    row = session.execute(stmt).mappings().one_or_none()
    return ChangeTicket(**row) if row else None


def find(
    *,
    grade_record_id: GradeRecordID | None = None,
    status: TicketStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[ChangeTicket, ...]:
    """Find tickets, newest first."""
    stmt = sqla.select(change_tickets.__table__).order_by(
        change_tickets.requested_at.desc(), change_tickets.ticket_id.desc()
    )
    if grade_record_id is not None:
        stmt = stmt.where(change_tickets.grade_record_id == grade_record_id)
    if status is not None:
        stmt = stmt.where(change_tickets.status == status.value)
    rows = session.execute(stmt).mappings().all()
    return tuple(ChangeTicket(**row) for row in rows)


def find_pending(
    *,
    period_id: PeriodID | None = None,
    class_id: ClassID | None = None,
    subject_id: SubjectID | None = None,
    requested_by: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[PendingTicket, ...]:
    """Pending tickets joined with the display names the review queue shows.

    Ordered by requested_at, newest first.
    """
    student = aliased(users, name="student")
    teacher = aliased(users, name="teacher")
    stmt = (
        sqla
        .select(
            *change_tickets.__table__.columns,
            grade_records.student_id,
            student.name.label("student_name"),
            grade_records.subject_id,
            subjects.name.label("subject_name"),
            grade_records.class_id,
            classes.name.label("class_name"),
            teacher.name.label("teacher_name"),
            grade_records.component_type,
            grade_records.sequence,
        )
        .join(grade_records, change_tickets.grade_record_id == grade_records.grade_record_id)
        .join(student, grade_records.student_id == student.user_id)
        .join(subjects, grade_records.subject_id == subjects.subject_id)
        .join(classes, grade_records.class_id == classes.class_id)
        .join(teacher, change_tickets.requested_by == teacher.user_id)
        .where(change_tickets.status == TicketStatus.Pending.value)
        .order_by(change_tickets.requested_at.desc(), change_tickets.ticket_id.desc())
    )
    if period_id is not None:
        stmt = stmt.where(change_tickets.period_id == period_id)
    if class_id is not None:
        stmt = stmt.where(grade_records.class_id == class_id)
    if subject_id is not None:
        stmt = stmt.where(grade_records.subject_id == subject_id)
    if requested_by is not None:
        stmt = stmt.where(change_tickets.requested_by == requested_by)
    rows = session.execute(stmt).mappings().all()
    return tuple(PendingTicket(**row) for row in rows)


def count_pending(
    *,
    period_id: PeriodID,
    class_id: ClassID,
    subject_id: SubjectID,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """Count pending tickets touching a (period, class, subject)."""
    stmt = (
        sqla
        .select(sqla.func.count())
        .select_from(change_tickets)
        .join(grade_records, change_tickets.grade_record_id == grade_records.grade_record_id)
        .where(change_tickets.status == TicketStatus.Pending.value)
        .where(grade_records.class_id == class_id)
        .where(grade_records.subject_id == subject_id)
        .where(sqla.or_(change_tickets.period_id == period_id, grade_records.period_id == period_id))
    )
    return session.execute(stmt).scalar_one()


def create(params: TicketCreateParams, session: Session = di.Provide["storage.persistent.session"]) -> ChangeTicket:
    ticket = change_tickets(
        ticket_id=TicketID(),
        grade_record_id=params["grade_record_id"],
        period_id=params["period_id"],
        old_value=params["old_value"],
        new_value=params["new_value"],
        reason=params.get("reason"),
        requested_by=params["requested_by"],
        requested_at=params["requested_at"],
    )
    session.add(ticket)
    session.flush()
    return get(ticket.ticket_id, session=session)  # type: ignore[return-value]


def decide(
    ticket_id: TicketID,
    *,
    status: t.Literal[TicketStatus.Approved, TicketStatus.Rejected],
    decided_by: UserID,
    decided_at: datetime.datetime,
    decision_note: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> ChangeTicket | None:
    """Move a pending ticket to a terminal status.

    Returns:
        the decided ticket, or None if the ticket was not pending (or does not
        exist) at the time of the write
    """
    stmt = (
        sqla
        .update(change_tickets)
        .where(change_tickets.ticket_id == ticket_id)
        .where(change_tickets.status == TicketStatus.Pending.value)
        .values(
            status=status.value,
            decided_by=decided_by,
            decided_at=decided_at,
            decision_note=decision_note,
        )
        .execution_options(synchronize_session=False)
    )
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        return None

    session.flush()
    return get(ticket_id, session=session)


class TicketCreateParams(t.TypedDict, total=False):
    grade_record_id: t.Required[GradeRecordID]
    period_id: t.Required[PeriodID]
    old_value: t.Required[decimal.Decimal | None]
    new_value: t.Required[decimal.Decimal | None]
    reason: str | None
    requested_by: t.Required[UserID]
    requested_at: t.Required[datetime.datetime]
