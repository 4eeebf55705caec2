from __future__ import annotations

import alembic.command
from alembic.config import Config

import gradeflow.lib.cli as click
from gradeflow.core import di

AlembicConfig = di.Provide["storage.persistent.alembic_config"]


@click.group("schema")
def schema():
    """Database migrations (alembic) for the grading tables."""


@schema.command()
@click.option("-v", "--verbose", is_flag=True, default=False)
@di.inject
def current(verbose: bool, ac: Config = AlembicConfig):
    """Show the revision the database is at."""
    alembic.command.current(ac, verbose=verbose)


@schema.command()
@click.option("-v", "--verbose", is_flag=True, default=False)
@di.inject
def history(verbose: bool, ac: Config = AlembicConfig):
    alembic.command.history(ac, verbose=verbose, indicate_current=True)


@schema.command()
@click.argument("revision", default="head")
@click.option("--sql", is_flag=True, default=False, help="print the DDL instead of running it")
@di.inject
def up(revision: str, sql: bool, ac: Config = AlembicConfig):
    """Migrate forward to REVISION (default: head)."""
    alembic.command.upgrade(ac, revision, sql=sql)


@schema.command()
@click.argument("revision")
@di.inject
def down(revision: str, ac: Config = AlembicConfig):
    """Migrate back to REVISION, e.g. ``-1`` or ``base``."""
    alembic.command.downgrade(ac, revision)


@schema.command()
@click.argument("message")
@click.option("--autogenerate/--empty", default=True)
@di.inject
def revision(message: str, autogenerate: bool, ac: Config = AlembicConfig):
    """Write a new migration script into migrations/versions."""
    alembic.command.revision(ac, message=message, autogenerate=autogenerate)


@schema.command()
@click.argument("revision")
@di.inject
def stamp(revision: str, ac: Config = AlembicConfig):
    """Record REVISION as current without running any migration."""
    alembic.command.stamp(ac, revision)
