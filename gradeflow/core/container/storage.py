from __future__ import annotations

import typing as t
from pathlib import Path

import alembic.config
import sqlalchemy
import sqlalchemy.event
import sqlalchemy.orm
import sqlalchemy.pool
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Factory, Object, Provider, Resource, Singleton
from sqlalchemy.engine.url import URL as DSN

from gradeflow.lib import json

from ..config.secrets import PostgresqlSecrets
from ..config.storage import PersistentSettings, StorageSettings
from ..di import NotReady
from ..provider import LoggingProvider

MigrationsDir: t.Final[Path] = Path("migrations")


def on_connect(*statements: str) -> t.Callable[[t.Any, t.Any], None]:
    """A ``connect`` listener that runs ``statements`` on every new DBAPI connection."""

    def listener(dbapi_conn: t.Any, _: t.Any) -> None:
        cursor = dbapi_conn.cursor()
        try:
            for statement in statements:
                cursor.execute(statement)
        finally:
            cursor.close()

    return listener


def provide_dsn(
    postgresql: dict[str, t.Any] | None, sqlite: dict[str, t.Any] | None, secrets: PostgresqlSecrets
) -> DSN:
    persistent = PersistentSettings(postgresql=postgresql, sqlite=sqlite)
    if persistent.sqlite is not None:
        return DSN.create(persistent.sqlite.driver, database=persistent.sqlite.database)

    pg = persistent.postgresql
    assert pg is not None

    def reveal(value: t.Any) -> str | None:
        return value.get_secret_value() if value is not None else None

    return DSN.create(
        pg.driver,
        username=reveal(secrets.username),
        password=reveal(secrets.password),
        host=str(pg.host) if pg.host else None,
        port=pg.port,
        database=pg.database,
    )


def provide_alembic_config(dsn: DSN, root: Path | NotReady) -> alembic.config.Config:
    if isinstance(root, NotReady):
        raise RuntimeError("the container must be booted before migrations can be located")

    url = dsn.render_as_string(hide_password=False)
    ac = alembic.config.Config()
    ac.set_main_option("script_location", str(root / MigrationsDir))
    # configparser interpolation: a literal % is written %%
    ac.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    ac.set_main_option("file_template", "%%(year)d-%%(month).2d-%%(day).2d-%%(slug)s-%%(rev)s")
    return ac


def provide_engine(dsn: DSN, logging: LoggingProvider) -> sqlalchemy.Engine:
    options: dict[str, t.Any] = {"json_serializer": json.dumps, "json_deserializer": json.loads}
    backend = dsn.get_backend_name()
    if backend == "sqlite":
        # in-memory databases exist per connection, so every session shares one
        options.update(poolclass=sqlalchemy.pool.StaticPool, connect_args={"check_same_thread": False})
        setup = on_connect("PRAGMA foreign_keys=ON")
    else:
        setup = on_connect("SET TIMEZONE TO 'UTC'")

    engine = sqlalchemy.create_engine(dsn, **options)
    sqlalchemy.event.listen(engine, "connect", setup)

    logging.get_logger().info(
        "database engine ready",
        extra={"backend": backend, "driver": dsn.drivername, "database": dsn.database, "host": dsn.host},
    )
    return engine


def provide_session(maker: sqlalchemy.orm.sessionmaker[sqlalchemy.orm.Session]) -> sqlalchemy.orm.Session:
    return maker(autobegin=False)


class PersistentContainer(DeclarativeContainer):
    config = Configuration()
    secrets = Configuration()
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    dsn: Provider[DSN] = Singleton(
        provide_dsn,
        postgresql=config.postgresql,
        sqlite=config.sqlite,
        secrets=secrets.postgresql.as_(PostgresqlSecrets),
    )
    alembic_config: Provider[alembic.config.Config] = Singleton(provide_alembic_config, dsn=dsn, root=root)
    engine: Provider[sqlalchemy.Engine] = Singleton(provide_engine, dsn=dsn, logging=logging)
    sessionmaker: Provider[sqlalchemy.orm.sessionmaker[sqlalchemy.orm.Session]] = Singleton(
        sqlalchemy.orm.sessionmaker, engine, expire_on_commit=False, autoflush=False
    )
    # callers open transactions explicitly with session.begin(); di.Manage closes it
    session: Provider[sqlalchemy.orm.Session] = Factory(provide_session, maker=sessionmaker)


class StorageContainer(DeclarativeContainer):
    config: Provider[StorageSettings] = Configuration(strict=True)
    secrets: Provider[StorageSettings] = Configuration(strict=True)
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    persistent: Provider[PersistentContainer] = Container(
        PersistentContainer, config=config.persistent, secrets=secrets, logging=logging, root=root
    )
