"""CLI commands for managing users and issuing API tokens."""

from __future__ import annotations

import datetime

from sqlalchemy.orm import Session

import gradeflow.lib.cli as click
from gradeflow.auth import token as token_auth
from gradeflow.core import di
from gradeflow.model import UserID, UserRole
from gradeflow.storage import user as user_storage


@click.group("user")
def user():
    """Manage teachers, administrators and students."""
    ...


@user.command("create")
@click.argument("email")
@click.argument("name")
@click.option("--role", "-r", type=click.EnumType(UserRole), required=True, help="The user's role")
@di.inject
def user_create(
    email: str,
    name: str,
    role: UserRole,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Create a new user.

    EMAIL is the user's email address.
    NAME is the user's display name.
    """
    with session.begin():
        existing = user_storage.get(email=email, session=session)
        if existing:
            raise click.ClickException(f"user with email '{email}' already exists")
        new_user = user_storage.create({"email": email, "name": name, "role": role}, session=session)

    click.echo(f"Created {role.value} {new_user.name} <{new_user.email}>")
    click.echo(f"  user_id: {new_user.user_id}")


@user.command("list")
@click.option("--role", "-r", type=click.EnumType(UserRole), default=None)
@di.inject
def user_list(role: UserRole | None, session: Session = di.Provide["storage.persistent.session"]) -> None:
    with session.begin():
        users = user_storage.find(role=role, session=session)
    for u in users:
        click.echo(f"{u.user_id}  {u.role.value:<8} {u.name} <{u.email}>")


@user.command("token")
@click.argument("user_id", type=click.KeyParamType(UserID))
@click.option("--expires", "-x", type=click.IntRange(min=1), default=None, help="lifetime in minutes")
@di.inject
def user_token(
    user_id: UserID,
    expires: int | None,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Issue a bearer token for USER_ID."""
    with session.begin():
        found = user_storage.get(user_id=user_id, session=session)
    if found is None:
        raise click.ClickException(f"user {user_id} not found")
    if found.role is UserRole.Student:
        raise click.ClickException("students do not use the grading API")

    delta = datetime.timedelta(minutes=expires) if expires else None
    click.echo(token_auth.create_access_token(found.user_id, found.role, expires_delta=delta))
