from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from gradeflow.core import di
from gradeflow.model import AcademicYearID, PeriodID, PeriodStatus, PeriodType, ReportingPeriod, SemesterID

from . import Session
from .table import reporting_periods


def get(period_id: PeriodID, session: Session = di.Provide["storage.persistent.session"]) -> ReportingPeriod | None:
    stmt = sqla.select(reporting_periods.__table__).where(reporting_periods.period_id == period_id)
    row = session.execute(stmt).mappings().one_or_none()
    return ReportingPeriod(**row) if row else None


def find(
    *,
    academic_year_id: AcademicYearID | None = None,
    semester_id: SemesterID | None = None,
    status: PeriodStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[ReportingPeriod, ...]:
    stmt = sqla.select(reporting_periods.__table__).order_by(reporting_periods.start_date)
    if academic_year_id is not None:
        stmt = stmt.where(reporting_periods.academic_year_id == academic_year_id)
    if semester_id is not None:
        stmt = stmt.where(reporting_periods.semester_id == semester_id)
    if status is not None:
        stmt = stmt.where(reporting_periods.status == status.value)
    rows = session.execute(stmt).mappings().all()
    return tuple(ReportingPeriod(**row) for row in rows)


def create(
    params: PeriodCreateParams, session: Session = di.Provide["storage.persistent.session"]
) -> ReportingPeriod:
    period = reporting_periods(
        period_id=PeriodID(),
        semester_id=params["semester_id"],
        academic_year_id=params["academic_year_id"],
        name=params["name"],
        period_type=params["period_type"].value,
        start_date=params["start_date"],
        end_date=params["end_date"],
        import_deadline=params["import_deadline"],
        edit_deadline=params["edit_deadline"],
        status=params.get("status", PeriodStatus.Open).value,
    )
    session.add(period)
    session.flush()
    return get(period.period_id, session=session)  # type: ignore[return-value]


def update(
    period_id: PeriodID,
    *,
    status: PeriodStatus,
    session: Session = di.Provide["storage.persistent.session"],
) -> ReportingPeriod:
    stmt = (
        sqla.update(reporting_periods).where(reporting_periods.period_id == period_id).values(status=status.value)
    )
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore [reportAttributeAccessIssue]
        raise KeyError(period_id)
    return get(period_id, session=session)  # type: ignore[return-value]


class PeriodCreateParams(t.TypedDict, total=False):
    semester_id: t.Required[SemesterID]
    academic_year_id: t.Required[AcademicYearID]
    name: t.Required[str]
    period_type: t.Required[PeriodType]
    start_date: t.Required[datetime.date]
    end_date: t.Required[datetime.date]
    import_deadline: t.Required[datetime.datetime]
    edit_deadline: t.Required[datetime.datetime]
    status: PeriodStatus
