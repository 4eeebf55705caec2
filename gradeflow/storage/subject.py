from __future__ import annotations

import sqlalchemy as sqla

from gradeflow.core import di
from gradeflow.model import Subject, SubjectID

from . import Session
from .table import subjects


def get(
    *,
    subject_id: SubjectID | None = None,
    code: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Subject | None:
    if (subject_id is None) == (code is None):
        raise ValueError("Exactly one of subject_id or code must be provided")

    if subject_id is not None:
        stmt = sqla.select(subjects.__table__).where(subjects.subject_id == subject_id)
    else:
        stmt = sqla.select(subjects.__table__).where(subjects.code == code)
    row = session.execute(stmt).mappings().one_or_none()
    return Subject(**row) if row else None


def create(*, name: str, code: str, session: Session = di.Provide["storage.persistent.session"]) -> Subject:
    obj = subjects(subject_id=SubjectID(), name=name, code=code)
    session.add(obj)
    session.flush()
    return get(subject_id=obj.subject_id, session=session)  # type: ignore[return-value]
