"""FastAPI dependency providers for the grading API."""

import typing as t

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from gradeflow.core import di, TimestampProvider
from gradeflow.grading import ErrorKind, GradingService, Result

T = t.TypeVar("T")

StatusByKind: t.Final[dict[ErrorKind, int]] = {
    ErrorKind.Validation: 422,
    ErrorKind.Permission: status.HTTP_403_FORBIDDEN,
    ErrorKind.NotFound: status.HTTP_404_NOT_FOUND,
    ErrorKind.Conflict: status.HTTP_409_CONFLICT,
    ErrorKind.Concurrency: status.HTTP_409_CONFLICT,
    ErrorKind.Internal: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@di.inject
def get_grading_service(
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> GradingService:
    """Get a grading service bound to a request-scoped session."""
    return GradingService(session, utcnow=utcnow)


def unwrap(result: Result[T]) -> T:
    """Return a successful result's value, or raise the matching HTTP error."""
    if result.is_success:
        return t.cast(T, result.value)

    assert result.error is not None
    raise HTTPException(
        status_code=StatusByKind[result.error.kind],
        detail={
            "code": result.error.code,
            "message": result.error.message,
            "context": result.error.context,
        },
    )
