"""CLI commands for the reporting period registry."""

from __future__ import annotations

import datetime

from sqlalchemy.orm import Session

import gradeflow.lib.cli as click
from gradeflow.core import di
from gradeflow.model import AcademicYearID, PeriodID, PeriodStatus, PeriodType, SemesterID
from gradeflow.storage import period as period_storage


def _deadline(value: datetime.datetime) -> datetime.datetime:
    # deadlines given without an offset are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.UTC)
    return value


@click.group("period")
def period():
    """Manage reporting periods."""
    ...


@period.command("create")
@click.argument("name")
@click.option("--type", "-t", "period_type", type=click.EnumType(PeriodType), required=True)
@click.option("--semester", "semester_id", type=click.KeyParamType(SemesterID), default=None)
@click.option("--year", "academic_year_id", type=click.KeyParamType(AcademicYearID), default=None)
@click.option("--start", type=click.DateTime(["%Y-%m-%d"]), required=True)
@click.option("--end", type=click.DateTime(["%Y-%m-%d"]), required=True)
@click.option("--import-deadline", type=click.DateTime(), required=True)
@click.option("--edit-deadline", type=click.DateTime(), required=True)
@di.inject
def period_create(
    name: str,
    period_type: PeriodType,
    semester_id: SemesterID | None,
    academic_year_id: AcademicYearID | None,
    start: datetime.datetime,
    end: datetime.datetime,
    import_deadline: datetime.datetime,
    edit_deadline: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Create a reporting period.

    Omitting --semester or --year starts a new one.
    """
    with session.begin():
        created = period_storage.create(
            {
                "semester_id": semester_id or SemesterID(),
                "academic_year_id": academic_year_id or AcademicYearID(),
                "name": name,
                "period_type": period_type,
                "start_date": start.date(),
                "end_date": end.date(),
                "import_deadline": _deadline(import_deadline),
                "edit_deadline": _deadline(edit_deadline),
            },
            session=session,
        )

    click.echo(f"Created period {created.name!r}")
    click.echo(f"  period_id:        {created.period_id}")
    click.echo(f"  semester_id:      {created.semester_id}")
    click.echo(f"  academic_year_id: {created.academic_year_id}")


@period.command("list")
@click.option("--semester", "semester_id", type=click.KeyParamType(SemesterID), default=None)
@click.option("--status", type=click.EnumType(PeriodStatus), default=None)
@di.inject
def period_list(
    semester_id: SemesterID | None,
    status: PeriodStatus | None,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    with session.begin():
        periods = period_storage.find(semester_id=semester_id, status=status, session=session)
    for pd in periods:
        click.echo(
            f"{pd.period_id}  {pd.status.value:<8} {pd.name}  "
            f"import by {pd.import_deadline:%Y-%m-%d %H:%M}, edit by {pd.edit_deadline:%Y-%m-%d %H:%M}"
        )


@period.command("set-status")
@click.argument("period_id", type=click.KeyParamType(PeriodID))
@click.argument("status", type=click.EnumType(PeriodStatus))
@di.inject
def period_set_status(
    period_id: PeriodID,
    status: PeriodStatus,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Close or reopen a reporting period."""
    with session.begin():
        try:
            updated = period_storage.update(period_id, status=status, session=session)
        except KeyError:
            raise click.ClickException(f"period {period_id} not found") from None
    click.echo(f"{updated.name!r} is now {updated.status.value}")
