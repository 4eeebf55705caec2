"""Grade submission and review routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from gradeflow.auth import get_current_actor
from gradeflow.core import di
from gradeflow.grading import GradingService, SubmissionFilter
from gradeflow.model import Actor, ClassID, PeriodID, SubjectID, SubmissionID, SubmissionStatus

from ..dependencies import get_grading_service, unwrap
from ..view.submission import ClosureResponse, SubmissionDecisionRequest, SubmissionListResponse, \
    SubmissionResponse, SubmitRequest

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


@router.post("", operation_id="submit_grades")
@di.inject
def submit_grades(
    request: SubmitRequest,
    actor: Actor = Depends(get_current_actor),
    service: GradingService = Depends(get_grading_service),
) -> SubmissionResponse:
    """Submit the current grades for review. Resubmitting requires a reason."""
    submission = unwrap(
        service.submit_grades(
            actor,
            request.period_id,
            request.class_id,
            request.subject_id,
            resubmission_reason=request.resubmission_reason,
        )
    )
    return SubmissionResponse.from_model(submission)


@router.post("/drafts", operation_id="save_draft")
@di.inject
def save_draft(
    request: SubmitRequest,
    actor: Actor = Depends(get_current_actor),
    service: GradingService = Depends(get_grading_service),
) -> SubmissionResponse:
    submission = unwrap(service.save_draft(actor, request.period_id, request.class_id, request.subject_id))
    return SubmissionResponse.from_model(submission)


@router.get("", operation_id="list_submissions")
@di.inject
def list_submissions(
    period_id: PeriodID | None = None,
    class_id: ClassID | None = None,
    subject_id: SubjectID | None = None,
    status: SubmissionStatus | None = None,
    actor: Actor = Depends(get_current_actor),
    service: GradingService = Depends(get_grading_service),
) -> SubmissionListResponse:
    """List submissions; teachers only ever see their own."""
    filter = SubmissionFilter()
    if period_id is not None:
        filter["period_id"] = period_id
    if class_id is not None:
        filter["class_id"] = class_id
    if subject_id is not None:
        filter["subject_id"] = subject_id
    if status is not None:
        filter["status"] = status

    submissions = unwrap(service.list_submissions(actor, filter))
    return SubmissionListResponse(
        submissions=[SubmissionResponse.from_model(s) for s in submissions],
        total=len(submissions),
    )


@router.get("/closure", operation_id="closure_status")
@di.inject
def closure_status(
    period_id: PeriodID,
    class_id: ClassID,
    subject_id: SubjectID,
    actor: Actor = Depends(get_current_actor),
    service: GradingService = Depends(get_grading_service),
) -> ClosureResponse:
    closure = unwrap(service.closure_status(actor, period_id, class_id, subject_id))
    return ClosureResponse.from_model(closure)


@router.post("/{submission_id}/decision", operation_id="decide_submission")
@di.inject
def decide_submission(
    submission_id: SubmissionID,
    request: SubmissionDecisionRequest,
    actor: Actor = Depends(get_current_actor),
    service: GradingService = Depends(get_grading_service),
) -> SubmissionResponse:
    """Approve or reject a submitted bundle. Rejection requires a reason."""
    submission = unwrap(service.decide_submission(actor, submission_id, request.decision, request.reason))
    return SubmissionResponse.from_model(submission)
