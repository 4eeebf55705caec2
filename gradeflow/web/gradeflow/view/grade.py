"""View models for grade entry and correction endpoints."""

from __future__ import annotations

import datetime
import decimal
import typing as t

import pydantic as p

from gradeflow.model import ChangeTicket, ClassID, Decision, GradeComponentType, GradeEntry, GradeRecord, \
    GradeRecordID, PendingTicket, PeriodID, Proposal, ProposalKind, SubjectID, TicketID, TicketStatus, UserID

# grades go over the wire as JSON numbers
GradeNumber = t.Annotated[decimal.Decimal, p.PlainSerializer(float, return_type=float, when_used="json")]


class GradeRecordResponse(p.BaseModel):
    """A recorded grade."""

    grade_record_id: GradeRecordID
    period_id: PeriodID
    student_id: UserID
    subject_id: SubjectID
    class_id: ClassID
    component_type: GradeComponentType
    sequence: int
    grade_value: GradeNumber | None
    previous_grade_value: GradeNumber | None
    is_overwrite: bool
    created_by: UserID
    updated_by: UserID | None
    updated_at: datetime.datetime
    version: int

    @classmethod
    def from_model(cls, record: GradeRecord) -> GradeRecordResponse:
        return cls(**record.model_dump())


class TicketResponse(p.BaseModel):
    """A change ticket."""

    ticket_id: TicketID
    grade_record_id: GradeRecordID
    period_id: PeriodID
    old_value: GradeNumber | None
    new_value: GradeNumber | None
    reason: str | None
    status: TicketStatus
    requested_by: UserID
    requested_at: datetime.datetime
    decided_by: UserID | None
    decided_at: datetime.datetime | None
    decision_note: str | None

    @classmethod
    def from_model(cls, ticket: ChangeTicket) -> TicketResponse:
        return cls(**ticket.model_dump())


class PendingTicketResponse(TicketResponse):
    """A pending ticket as shown in the administrator's review queue."""

    student_id: UserID
    student_name: str
    subject_id: SubjectID
    subject_name: str
    class_id: ClassID
    class_name: str
    teacher_name: str
    component_type: GradeComponentType
    sequence: int
    component_label: str

    @classmethod
    def from_model(cls, ticket: PendingTicket) -> PendingTicketResponse:  # pyright: ignore

        return cls(**ticket.model_dump(), component_label=ticket.component_label)


class PendingTicketListResponse(p.BaseModel):
    tickets: list[PendingTicketResponse]
    total: int


class TicketHistoryResponse(p.BaseModel):
    grade_record_id: GradeRecordID
    tickets: list[TicketResponse]


class OverrideRequest(p.BaseModel):
    """Request body for entering or correcting a single grade."""

    period_id: PeriodID
    student_id: UserID
    subject_id: SubjectID
    class_id: ClassID
    component_type: GradeComponentType
    sequence: int = 0
    new_value: decimal.Decimal | None
    reason: str | None = None
    # the period the teacher is working in, when it differs from the record's
    context_period_id: PeriodID | None = None


class ProposalResponse(p.BaseModel):
    kind: ProposalKind
    record: GradeRecordResponse | None
    ticket: TicketResponse | None = None

    @classmethod
    def from_model(cls, proposal: Proposal) -> ProposalResponse:
        return cls(
            kind=proposal.kind,
            record=GradeRecordResponse.from_model(proposal.record) if proposal.record else None,
            ticket=TicketResponse.from_model(proposal.ticket) if proposal.ticket else None,
        )


class DecisionRequest(p.BaseModel):
    """Request body for an administrator's decision."""

    decision: Decision
    note: str | None = None


class ImportRequest(p.BaseModel):
    """Request body for bulk grade entry."""

    period_id: PeriodID
    class_id: ClassID
    subject_id: SubjectID
    entries: list[GradeEntry]


class ImportResponse(p.BaseModel):
    proposals: list[ProposalResponse]
    created: int
    overridden: int
    unchanged: int

    @classmethod
    def from_models(cls, proposals: t.Sequence[Proposal]) -> ImportResponse:
        kinds = [pr.kind for pr in proposals]
        return cls(
            proposals=[ProposalResponse.from_model(pr) for pr in proposals],
            created=kinds.count(ProposalKind.New),
            overridden=kinds.count(ProposalKind.Override),
            unchanged=kinds.count(ProposalKind.Noop),
        )
