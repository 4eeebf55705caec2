from __future__ import annotations

import datetime
import decimal
import typing as t

import sqlalchemy as sqla

from gradeflow.core import di
from gradeflow.lib import NotSet
from gradeflow.model import ClassID, GradeComponentType, GradeKey, GradeRecord, GradeRecordID, PeriodID, SubjectID, \
    UserID

from . import Session
from .table import grade_records


def get(
    grade_record_id: GradeRecordID, session: Session = di.Provide["storage.persistent.session"]
) -> GradeRecord | None:
    stmt = sqla.select(grade_records.__table__).where(grade_records.grade_record_id == grade_record_id)
    row = session.execute(stmt).mappings().one_or_none()
    return GradeRecord(**row) if row else None


def get_by_key(key: GradeKey, session: Session = di.Provide["storage.persistent.session"]) -> GradeRecord | None:
    stmt = sqla.select(grade_records.__table__).where(
        grade_records.period_id == key.period_id,
        grade_records.student_id == key.student_id,
        grade_records.subject_id == key.subject_id,
        grade_records.class_id == key.class_id,
        grade_records.component_type == key.component_type.value,
        grade_records.sequence == key.sequence,
    )
    row = session.execute(stmt).mappings().one_or_none()
    return GradeRecord(**row) if row else None


def find(
    *,
    period_id: PeriodID | None = None,
    class_id: ClassID | None = None,
    subject_id: SubjectID | None = None,
    student_id: UserID | None = None,
    component_type: GradeComponentType | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradeRecord, ...]:
    stmt = sqla.select(grade_records.__table__).order_by(
        grade_records.student_id, grade_records.component_type, grade_records.sequence
    )
    if period_id is not None:
        stmt = stmt.where(grade_records.period_id == period_id)
    if class_id is not None:
        stmt = stmt.where(grade_records.class_id == class_id)
    if subject_id is not None:
        stmt = stmt.where(grade_records.subject_id == subject_id)
    if student_id is not None:
        stmt = stmt.where(grade_records.student_id == student_id)
    if component_type is not None:
        stmt = stmt.where(grade_records.component_type == component_type.value)
    rows = session.execute(stmt).mappings().all()
    return tuple(GradeRecord(**row) for row in rows)


def create(params: GradeCreateParams, session: Session = di.Provide["storage.persistent.session"]) -> GradeRecord:
    """Insert a new grade record.

    Raises:
        sqlalchemy.exc.IntegrityError: if a record already exists for the key
    """
    key = params["key"]
    record = grade_records(
        grade_record_id=GradeRecordID(),
        period_id=key.period_id,
        student_id=key.student_id,
        subject_id=key.subject_id,
        class_id=key.class_id,
        component_type=key.component_type.value,
        sequence=key.sequence,
        grade_value=params["grade_value"],
        created_by=params["created_by"],
        updated_at=params["updated_at"],
        updated_by=params["created_by"],
    )
    session.add(record)
    session.flush()
    return get(record.grade_record_id, session=session)  # type: ignore[return-value]


def update(
    grade_record_id: GradeRecordID,
    *,
    expected_version: int,
    grade_value: decimal.Decimal | None,
    updated_by: UserID,
    updated_at: datetime.datetime,
    previous_grade_value: decimal.Decimal | None | NotSet = NotSet(),
    is_overwrite: bool | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeRecord | None:
    """Compare-and-swap update of a grade record.

    The write only lands if the stored version still equals
    ``expected_version``; the version is bumped on success.

    Returns:
        the updated record, or None if the version check failed or the record
        does not exist
    """
    values: dict[str, t.Any] = {
        "grade_value": grade_value,
        "updated_by": updated_by,
        "updated_at": updated_at,
        "version": expected_version + 1,
    }
    if not isinstance(previous_grade_value, NotSet):
        values["previous_grade_value"] = previous_grade_value
    if not isinstance(is_overwrite, NotSet):
        values["is_overwrite"] = is_overwrite

    stmt = (
        sqla
        .update(grade_records)
        .where(grade_records.grade_record_id == grade_record_id)
        .where(grade_records.version == expected_version)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        return None

    session.flush()
    return get(grade_record_id, session=session)


class GradeCreateParams(t.TypedDict):
    key: GradeKey
    grade_value: decimal.Decimal | None
    created_by: UserID
    updated_at: datetime.datetime
