"""CLI commands for classes and subjects."""

from __future__ import annotations

from sqlalchemy.orm import Session

import gradeflow.lib.cli as click
from gradeflow.core import di
from gradeflow.storage import schoolclass as class_storage
from gradeflow.storage import subject as subject_storage


@click.group("catalog")
def catalog():
    """Manage classes and subjects."""
    ...


@catalog.command("add-class")
@click.argument("name")
@di.inject
def add_class(name: str, session: Session = di.Provide["storage.persistent.session"]) -> None:
    with session.begin():
        created = class_storage.create(name=name, session=session)
    click.echo(f"{created.class_id}  {created.name}")


@catalog.command("add-subject")
@click.argument("name")
@click.argument("code")
@di.inject
def add_subject(name: str, code: str, session: Session = di.Provide["storage.persistent.session"]) -> None:
    with session.begin():
        if subject_storage.get(code=code, session=session) is not None:
            raise click.ClickException(f"subject with code {code!r} already exists")
        created = subject_storage.create(name=name, code=code, session=session)
    click.echo(f"{created.subject_id}  {created.code}  {created.name}")
