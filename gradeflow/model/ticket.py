from __future__ import annotations

import datetime
import enum

from .base import BaseModel, WithDecision
from .grade import GradeComponentType, GradeRecord, GradeValue
from .id import ClassID, GradeRecordID, PeriodID, SubjectID, TicketID, UserID


class TicketStatus(enum.Enum):
    Pending = "pending"
    Approved = "approved"
    Rejected = "rejected"


class ProposalKind(enum.Enum):
    New = "new"
    Noop = "noop"
    Override = "override"


class ChangeTicket(WithDecision):
    ticket_id: TicketID
    grade_record_id: GradeRecordID
    period_id: PeriodID

    old_value: GradeValue | None
    new_value: GradeValue | None
    reason: str | None = None

    status: TicketStatus = TicketStatus.Pending
    requested_by: UserID
    requested_at: datetime.datetime

    @property
    def is_decided(self) -> bool:
        return self.status is not TicketStatus.Pending


class PendingTicket(ChangeTicket):
    """A pending ticket joined with the display data the review queue needs."""

    student_id: UserID
    student_name: str
    subject_id: SubjectID
    subject_name: str
    class_id: ClassID
    class_name: str
    teacher_name: str
    component_type: GradeComponentType
    sequence: int = 0

    @property
    def component_label(self) -> str:
        return self.component_type.label(self.sequence)


class Proposal(BaseModel):
    """Outcome of proposing a value for a grade record."""

    kind: ProposalKind
    record: GradeRecord | None
    ticket: ChangeTicket | None = None
