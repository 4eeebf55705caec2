"""Error taxonomy for the grading workflow.

Components raise these; the service boundary turns them into failed
``Result`` values and the web layer maps ``kind`` onto HTTP status codes.
"""

from __future__ import annotations

import enum
import typing as t


class ErrorKind(enum.Enum):
    Validation = "validation"
    Permission = "permission"
    Conflict = "conflict"
    NotFound = "not_found"
    Concurrency = "concurrency"
    Internal = "internal"


class GradeflowError(Exception):
    kind: t.ClassVar[ErrorKind] = ErrorKind.Internal
    code: t.ClassVar[str] = "internal_error"

    def __init__(self, message: str, **context: t.Any):
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(GradeflowError):
    kind = ErrorKind.Validation
    code = "validation_error"


class MissingJustification(ValidationError):
    code = "missing_justification"


class PermissionDenied(GradeflowError):
    kind = ErrorKind.Permission
    code = "permission_denied"


class ConflictError(GradeflowError):
    kind = ErrorKind.Conflict
    code = "conflict"


class CrossSemesterEdit(ConflictError):
    code = "cross_semester_edit"


class DeadlinePassed(ConflictError):
    code = "deadline_passed"


class PeriodClosed(ConflictError):
    code = "period_closed"


class AlreadyDecided(ConflictError):
    code = "already_decided"


class AlreadyApproved(ConflictError):
    code = "already_approved"


class PendingCorrection(ConflictError):
    code = "pending_correction"


class InvalidTransition(ConflictError):
    code = "invalid_transition"


class NotFoundError(GradeflowError):
    kind = ErrorKind.NotFound
    code = "not_found"


class ConcurrencyError(GradeflowError):
    kind = ErrorKind.Concurrency
    code = "concurrency_error"


class InternalError(GradeflowError):
    kind = ErrorKind.Internal
    code = "internal_error"
