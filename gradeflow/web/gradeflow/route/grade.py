"""Grade entry and correction routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from gradeflow.auth import get_current_actor
from gradeflow.core import di
from gradeflow.grading import GradingService, PendingFilter
from gradeflow.model import Actor, ClassID, GradeKey, GradeRecordID, PeriodID, SubjectID, TicketID

from ..dependencies import get_grading_service, unwrap
from ..view.grade import DecisionRequest, ImportRequest, ImportResponse, OverrideRequest, PendingTicketListResponse, \
    PendingTicketResponse, ProposalResponse, TicketHistoryResponse, TicketResponse

router = APIRouter(prefix="/api/grades", tags=["grades"])


@router.post("/overrides", operation_id="propose_override")
@di.inject
def propose_override(
    request: OverrideRequest,
    actor: Actor = Depends(get_current_actor),
    service: GradingService = Depends(get_grading_service),
) -> ProposalResponse:
    """Enter a grade, or correct one already on record.

    A correction takes effect at once and opens a change ticket for an
    administrator to approve or reject.
    """
    key = GradeKey(
        period_id=request.period_id,
        student_id=request.student_id,
        subject_id=request.subject_id,
        class_id=request.class_id,
        component_type=request.component_type,
        sequence=request.sequence,
    )
    proposal = unwrap(
        service.propose_override(
            actor, key, request.new_value, reason=request.reason, period_id=request.context_period_id
        )
    )
    return ProposalResponse.from_model(proposal)


@router.post("/import", operation_id="import_grades")
@di.inject
def import_grades(
    request: ImportRequest,
    actor: Actor = Depends(get_current_actor),
    service: GradingService = Depends(get_grading_service),
) -> ImportResponse:
    """Enter grades in bulk; the whole batch is rejected if any row is."""
    proposals = unwrap(
        service.import_grades(actor, request.period_id, request.class_id, request.subject_id, request.entries)
    )
    return ImportResponse.from_models(proposals)


@router.get("/overrides/pending", operation_id="list_pending_overrides")
@di.inject
def list_pending_overrides(
    period_id: PeriodID | None = None,
    class_id: ClassID | None = None,
    subject_id: SubjectID | None = None,
    actor: Actor = Depends(get_current_actor),
    service: GradingService = Depends(get_grading_service),
) -> PendingTicketListResponse:
    """List corrections awaiting review, newest first."""
    filter = PendingFilter()
    if period_id is not None:
        filter["period_id"] = period_id
    if class_id is not None:
        filter["class_id"] = class_id
    if subject_id is not None:
        filter["subject_id"] = subject_id

    tickets = unwrap(service.list_pending_overrides(actor, filter))
    return PendingTicketListResponse(
        tickets=[PendingTicketResponse.from_model(tk) for tk in tickets],
        total=len(tickets),
    )


@router.post("/overrides/{ticket_id}/decision", operation_id="decide_override")
@di.inject
def decide_override(
    ticket_id: TicketID,
    request: DecisionRequest,
    actor: Actor = Depends(get_current_actor),
    service: GradingService = Depends(get_grading_service),
) -> TicketResponse:
    """Approve or reject a pending correction. Rejecting restores the previous value."""
    ticket = unwrap(service.decide_override(actor, ticket_id, request.decision, request.note))
    return TicketResponse.from_model(ticket)


@router.get("/records/{grade_record_id}/history", operation_id="grade_history")
@di.inject
def grade_history(
    grade_record_id: GradeRecordID,
    actor: Actor = Depends(get_current_actor),
    service: GradingService = Depends(get_grading_service),
) -> TicketHistoryResponse:
    tickets = unwrap(service.grade_history(actor, grade_record_id))
    return TicketHistoryResponse(
        grade_record_id=grade_record_id,
        tickets=[TicketResponse.from_model(tk) for tk in tickets],
    )
