from __future__ import annotations

import sqlalchemy as sqla

from gradeflow.core import di
from gradeflow.model import ClassID, SchoolClass

from . import Session
from .table import classes


def get(class_id: ClassID, session: Session = di.Provide["storage.persistent.session"]) -> SchoolClass | None:
    stmt = sqla.select(classes.__table__).where(classes.class_id == class_id)
    row = session.execute(stmt).mappings().one_or_none()
    return SchoolClass(**row) if row else None


def create(*, name: str, session: Session = di.Provide["storage.persistent.session"]) -> SchoolClass:
    obj = classes(class_id=ClassID(), name=name)
    session.add(obj)
    session.flush()
    return get(obj.class_id, session=session)  # type: ignore[return-value]
