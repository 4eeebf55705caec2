"""Pure checks applied before anything is written.

Nothing here touches storage; callers load the records and periods and pass
them in.
"""

from __future__ import annotations

import datetime
import decimal
import typing as t

from gradeflow.model import GradeComponentType, GradeRecord, GradeValue, PeriodStatus, ProposalKind, ReportingPeriod

from .errors import CrossSemesterEdit, DeadlinePassed, MissingJustification, PeriodClosed, ValidationError

MinGrade: t.Final[GradeValue] = decimal.Decimal("0")
MaxGrade: t.Final[GradeValue] = decimal.Decimal("10")
GradeQuantum: t.Final[GradeValue] = decimal.Decimal("0.01")

DeadlineKind = t.Literal["import", "edit"]


class Classification(t.NamedTuple):
    kind: ProposalKind
    requires_reason: bool


def check_grade_value(value: t.Any) -> GradeValue | None:
    """Coerce a proposed grade into the 0.0 - 10.0 domain, or None for ungraded.

    Raises:
        ValidationError: the value is non-numeric, out of range or has more
            than two decimal places
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError("grade value must be numeric", value=value)
    try:
        dv = value if isinstance(value, decimal.Decimal) else decimal.Decimal(str(value).strip())
    except (decimal.InvalidOperation, ValueError):
        raise ValidationError("grade value must be numeric", value=value) from None
    if not dv.is_finite():
        raise ValidationError("grade value must be numeric", value=value)
    if dv < MinGrade or dv > MaxGrade:
        raise ValidationError(f"grade value must be between {MinGrade} and {MaxGrade}", value=value)
    if dv != dv.quantize(GradeQuantum):
        raise ValidationError("grade value takes at most two decimal places", value=value)
    return dv


def has_text(s: str | None) -> bool:
    return s is not None and s.strip() != ""


def check_same_semester(existing_period: ReportingPeriod, proposed_period: ReportingPeriod) -> None:
    """Grades may only be corrected within the semester they were recorded in."""
    if existing_period.semester_id != proposed_period.semester_id:
        raise CrossSemesterEdit(
            "grades may only be corrected within the semester in which they were recorded",
            recorded_semester=existing_period.semester_id,
            proposed_semester=proposed_period.semester_id,
        )


def check_period_open(period: ReportingPeriod) -> None:
    if period.status is PeriodStatus.Closed:
        raise PeriodClosed(f"reporting period {period.name!r} is closed", period_id=period.period_id)


def check_deadline(period: ReportingPeriod, now: datetime.datetime, kind: DeadlineKind) -> None:
    """Reject writes after the period's import or edit deadline."""
    deadline = period.import_deadline if kind == "import" else period.edit_deadline
    if now > deadline:
        raise DeadlinePassed(
            f"the {kind} deadline for {period.name!r} has passed",
            period_id=period.period_id,
            deadline=deadline.isoformat(),
        )


def classify(
    existing: GradeRecord | None,
    proposed_value: GradeValue | None,
    component_type: GradeComponentType,
    period: ReportingPeriod,
    existing_period: ReportingPeriod | None = None,
    reason: str | None = None,
) -> Classification:
    """Decide whether a proposed value is a first entry, a no-op or an override.

    ``period`` is the period the correction is being made from and
    ``existing_period`` the one the record was entered in (defaults to
    ``period``).

    Raises:
        CrossSemesterEdit: the two periods belong to different semesters
        MissingJustification: a sensitive component is overridden without a reason
    """
    if existing is None or existing.grade_value is None:
        return Classification(ProposalKind.New, False)

    if proposed_value is not None and existing.grade_value == proposed_value:
        return Classification(ProposalKind.Noop, False)

    check_same_semester(existing_period or period, period)

    requires_reason = component_type.is_sensitive
    if requires_reason and not has_text(reason):
        raise MissingJustification(
            f"overriding a {component_type.value} grade requires a reason",
            grade_record_id=existing.grade_record_id,
        )
    return Classification(ProposalKind.Override, requires_reason)
