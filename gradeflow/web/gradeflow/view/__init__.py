"""View models for the grading web application."""

__all__ = [
    # Grade views
    "DecisionRequest",
    "GradeNumber",
    "GradeRecordResponse",
    "ImportRequest",
    "ImportResponse",
    "OverrideRequest",
    "PendingTicketListResponse",
    "PendingTicketResponse",
    "ProposalResponse",
    "TicketHistoryResponse",
    "TicketResponse",
    # Submission views
    "ClosureResponse",
    "SnapshotResponse",
    "SnapshotRowResponse",
    "SubmissionDecisionRequest",
    "SubmissionListResponse",
    "SubmissionResponse",
    "SubmitRequest",
]

from .grade import DecisionRequest, GradeNumber, GradeRecordResponse, ImportRequest, ImportResponse, OverrideRequest, \
    PendingTicketListResponse, PendingTicketResponse, ProposalResponse, TicketHistoryResponse, TicketResponse
from .submission import ClosureResponse, SnapshotResponse, SnapshotRowResponse, SubmissionDecisionRequest, \
    SubmissionListResponse, SubmissionResponse, SubmitRequest
