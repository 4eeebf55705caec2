__all__ = [
    # Service boundary
    "GradingService",
    "Result",
    "ErrorInfo",
    # Components
    "ApprovalCoordinator",
    "ChangeTicketLedger",
    "GradeStore",
    "SubmissionManager",
    "PendingFilter",
    "SubmissionFilter",
    "WriteMeta",
    # Rules
    "Classification",
    "check_grade_value",
    "classify",
    "subject_average",
    # Errors
    "ErrorKind",
    "GradeflowError",
    "AlreadyApproved",
    "AlreadyDecided",
    "ConcurrencyError",
    "ConflictError",
    "CrossSemesterEdit",
    "DeadlinePassed",
    "InternalError",
    "InvalidTransition",
    "MissingJustification",
    "NotFoundError",
    "PendingCorrection",
    "PeriodClosed",
    "PermissionDenied",
    "ValidationError",
]

from .approval import ApprovalCoordinator
from .average import subject_average
from .errors import AlreadyApproved, AlreadyDecided, ConcurrencyError, ConflictError, CrossSemesterEdit, \
    DeadlinePassed, ErrorKind, GradeflowError, InternalError, InvalidTransition, MissingJustification, NotFoundError, \
    PendingCorrection, PeriodClosed, PermissionDenied, ValidationError
from .ledger import ChangeTicketLedger, PendingFilter
from .result import ErrorInfo, Result
from .service import GradingService
from .store import GradeStore, WriteMeta
from .submission import SubmissionFilter, SubmissionManager
from .validator import check_grade_value, Classification, classify
