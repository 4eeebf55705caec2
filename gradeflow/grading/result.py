"""Result values returned across the service boundary instead of raising."""

from __future__ import annotations

import typing as t

from gradeflow.model import BaseModel

from .errors import ErrorKind, GradeflowError

T = t.TypeVar("T")


class ErrorInfo(BaseModel):
    kind: ErrorKind
    code: str
    message: str
    context: dict[str, t.Any] = {}

    @classmethod
    def from_exception(cls, e: GradeflowError) -> ErrorInfo:
        return cls(kind=e.kind, code=e.code, message=e.message, context={k: str(v) for k, v in e.context.items()})


class Result(t.Generic[T]):
    def __init__(self, is_success: bool, value: T | None = None, error: ErrorInfo | None = None):
        self.is_success = is_success
        self.value = value
        self.error = error

    @classmethod
    def ok(cls, value: T) -> Result[T]:
        return cls(is_success=True, value=value)

    @classmethod
    def fail(cls, error: ErrorInfo | GradeflowError) -> Result[T]:
        if isinstance(error, GradeflowError):
            error = ErrorInfo.from_exception(error)
        return cls(is_success=False, error=error)

    def unwrap(self) -> T:
        """Return the value, or raise if this result is a failure."""
        if not self.is_success:
            assert self.error is not None
            raise RuntimeError(f"unwrap of failed result: {self.error.code}: {self.error.message}")
        return t.cast(T, self.value)

    def __repr__(self) -> str:
        if self.is_success:
            return f"Result.ok({self.value!r})"
        return f"Result.fail({self.error!r})"
