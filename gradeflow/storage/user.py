from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from gradeflow.core import di
from gradeflow.model import User, UserID, UserRole

from . import Session
from .table import users


def get(
    *,
    user_id: UserID | None = None,
    email: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> User | None:
    """Look a user up by id, or by email address as the importer and CLI do."""
    if (user_id is None) == (email is None):
        raise ValueError("pass exactly one of user_id or email")

    where = users.user_id == user_id if user_id is not None else users.email == email
    row = session.execute(sqla.select(users.__table__).where(where)).mappings().one_or_none()
    return User(**row) if row else None


def find(
    *,
    role: UserRole | None = None,
    user_ids: t.Collection[UserID] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[User, ...]:
    stmt = sqla.select(users.__table__).order_by(users.name)
    if role is not None:
        stmt = stmt.where(users.role == role.value)
    if user_ids is not None:
        stmt = stmt.where(users.user_id.in_(list(user_ids)))
    rows = session.execute(stmt).mappings().all()
    return tuple(User(**row) for row in rows)


def create(params: UserCreateParams, session: Session = di.Provide["storage.persistent.session"]) -> User:
    user = users(
        user_id=UserID(),
        email=params["email"],
        name=params["name"],
        role=params["role"].value,
    )
    session.add(user)
    session.flush()
    return get(user_id=user.user_id, session=session)  # type: ignore[return-value]


class UserCreateParams(t.TypedDict):
    email: str
    name: str
    role: UserRole
