"""Pytest fixtures for gradeflow tests.

The container is booted once per session in the test environment, which
points storage at an in-memory SQLite database. Each test gets a freshly
created schema that is dropped again afterwards.

Usage:
    def test_something(service: GradingService, school: School):
        result = service.propose_override(school.teacher_actor, key, 8)
        assert result.is_success
"""

from __future__ import annotations

import datetime
import decimal
import os
import typing as t
from pathlib import Path

import pydantic as p
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import gradeflow
from gradeflow.auth import JWTManager
from gradeflow.core import GradeflowContainer
from gradeflow.core.config.web import GradeflowWebSettings
from gradeflow.grading import GradingService
from gradeflow.model import (
    AcademicYearID,
    Actor,
    DeploymentEnvironment,
    GradeComponentType,
    GradeKey,
    GradeRecord,
    PeriodStatus,
    PeriodType,
    ReportingPeriod,
    SchoolClass,
    SemesterID,
    Subject,
    User,
    UserID,
    UserRole,
)
from gradeflow.storage import grade as grade_storage
from gradeflow.storage import period as period_storage
from gradeflow.storage import schoolclass as class_storage
from gradeflow.storage import subject as subject_storage
from gradeflow.storage import user as user_storage
from gradeflow.storage.table import base
from gradeflow.web.gradeflow.main import _create_app, WiredModules  # pyright: ignore[reportPrivateUsage]

TEST_JWT_SECRET = "test-jwt-secret-for-integration-tests"

NOW = datetime.datetime(2026, 3, 2, 8, 0, tzinfo=datetime.UTC)


class Clock(object):
    """A settable stand-in for ``utcnow``."""

    def __init__(self, now: datetime.datetime):
        self.now = now

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime.datetime:
        self.now += datetime.timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="session")
def container() -> t.Generator[GradeflowContainer]:
    """Boot the DI container for the test session."""
    ct = GradeflowContainer()
    root = Path(os.path.dirname(gradeflow.__file__)).parent

    GradeflowContainer.boot(
        ct,
        debug=False,
        env=DeploymentEnvironment.Test,
        config_root=p.FileUrl(f"file://{root}/config"),
        override=(),
    )

    yield ct

    ct.shutdown_resources()


@pytest.fixture(scope="session")
def app(container: GradeflowContainer) -> FastAPI:
    """Create the FastAPI application for testing.

    The test environment carries no secrets, so the JWT secret is supplied
    here.
    """
    container.secrets.override({**container.secrets(), "auth": {"jwt": p.Secret(TEST_JWT_SECRET)}})
    container.wire(modules=list(WiredModules))

    return _create_app(
        config=GradeflowWebSettings(**container.config.web.gradeflow()),
        env=DeploymentEnvironment.Test,
        root_path=t.cast(Path, container.root()),
    )


@pytest.fixture
def db_session(container: GradeflowContainer) -> t.Generator[Session]:
    """Provide a session over a freshly created schema.

    autobegin=False matches production, so code under test opens its own
    transactions with session.begin().
    """
    engine = container.storage().persistent().engine()
    base.metadata.create_all(engine)

    session = Session(bind=engine, autobegin=False, expire_on_commit=False, autoflush=False)

    yield session

    session.close()
    base.metadata.drop_all(engine)


@pytest.fixture
def clock() -> Clock:
    return Clock(NOW)


@pytest.fixture
def client(
    app: FastAPI, container: GradeflowContainer, db_session: Session, clock: Clock
) -> t.Generator[TestClient]:
    """Provide a TestClient whose requests share the test's session and clock."""
    container.storage().persistent().session.override(db_session)
    container.utcnow.override(clock)

    with TestClient(app) as test_client:
        yield test_client

    container.utcnow.reset_override()
    container.storage().persistent().session.reset_override()


@pytest.fixture
def service(db_session: Session, clock: Clock) -> GradingService:
    return GradingService(db_session, utcnow=clock)


@pytest.fixture
def user_factory(db_session: Session) -> t.Callable[..., User]:
    """Factory fixture for creating users.

    Usage:
        def test_something(user_factory):
            teacher = user_factory(name="Ms. Lan", role=UserRole.Teacher)
    """

    def create_user(
        name: str = "Test User",
        role: UserRole = UserRole.Student,
        email: str | None = None,
    ) -> User:
        if email is None:
            email = f"{role.value}-{UserID().key[:10].lower()}@school.edu"
        with db_session.begin():
            return user_storage.create({"email": email, "name": name, "role": role}, session=db_session)

    return create_user


@pytest.fixture
def class_factory(db_session: Session) -> t.Callable[..., SchoolClass]:
    def create_class(name: str = "10A1") -> SchoolClass:
        with db_session.begin():
            return class_storage.create(name=name, session=db_session)

    return create_class


@pytest.fixture
def subject_factory(db_session: Session) -> t.Callable[..., Subject]:
    def create_subject(name: str = "Mathematics", code: str | None = None) -> Subject:
        if code is None:
            code = f"{name[:4].upper()}-{UserID().key[:6]}"
        with db_session.begin():
            return subject_storage.create(name=name, code=code, session=db_session)

    return create_subject


@pytest.fixture
def period_factory(db_session: Session) -> t.Callable[..., ReportingPeriod]:
    """Factory fixture for reporting periods.

    Deadlines default to well after ``NOW``: imports close ten days out,
    edits twenty.
    """

    def create_period(
        name: str = "Semester 1 midterm",
        period_type: PeriodType = PeriodType.Midterm1,
        semester_id: SemesterID | None = None,
        academic_year_id: AcademicYearID | None = None,
        import_deadline: datetime.datetime | None = None,
        edit_deadline: datetime.datetime | None = None,
        status: PeriodStatus = PeriodStatus.Open,
    ) -> ReportingPeriod:
        with db_session.begin():
            return period_storage.create(
                {
                    "semester_id": semester_id or SemesterID(),
                    "academic_year_id": academic_year_id or AcademicYearID(),
                    "name": name,
                    "period_type": period_type,
                    "start_date": datetime.date(2026, 1, 5),
                    "end_date": datetime.date(2026, 3, 20),
                    "import_deadline": import_deadline or NOW + datetime.timedelta(days=10),
                    "edit_deadline": edit_deadline or NOW + datetime.timedelta(days=20),
                    "status": status,
                },
                session=db_session,
            )

    return create_period


class School(t.NamedTuple):
    """A small fixture world: one class studying one subject in one period."""

    teacher: User
    admin: User
    students: tuple[User, ...]
    schoolclass: SchoolClass
    subject: Subject
    period: ReportingPeriod

    @property
    def teacher_actor(self) -> Actor:
        return Actor(actor_id=self.teacher.user_id, role=UserRole.Teacher)

    @property
    def admin_actor(self) -> Actor:
        return Actor(actor_id=self.admin.user_id, role=UserRole.Admin)

    def key(
        self,
        component_type: GradeComponentType = GradeComponentType.Midterm,
        sequence: int = 0,
        student: int = 0,
        period: ReportingPeriod | None = None,
    ) -> GradeKey:
        return GradeKey(
            period_id=(period or self.period).period_id,
            student_id=self.students[student].user_id,
            subject_id=self.subject.subject_id,
            class_id=self.schoolclass.class_id,
            component_type=component_type,
            sequence=sequence,
        )


@pytest.fixture
def school(
    user_factory: t.Callable[..., User],
    class_factory: t.Callable[..., SchoolClass],
    subject_factory: t.Callable[..., Subject],
    period_factory: t.Callable[..., ReportingPeriod],
) -> School:
    return School(
        teacher=user_factory(name="Nguyen Thi Lan", role=UserRole.Teacher),
        admin=user_factory(name="Tran Van Minh", role=UserRole.Admin),
        students=(
            user_factory(name="Alice Pham"),
            user_factory(name="Bao Le"),
        ),
        schoolclass=class_factory(),
        subject=subject_factory(),
        period=period_factory(),
    )


@pytest.fixture
def grade_factory(db_session: Session, clock: Clock) -> t.Callable[..., GradeRecord]:
    """Factory fixture writing a grade record directly, bypassing the ledger."""

    def create_grade(key: GradeKey, value: decimal.Decimal | float | str | None, created_by: UserID) -> GradeRecord:
        with db_session.begin():
            return grade_storage.create(
                {
                    "key": key,
                    "grade_value": decimal.Decimal(str(value)) if value is not None else None,
                    "created_by": created_by,
                    "updated_at": clock(),
                },
                session=db_session,
            )

    return create_grade


@pytest.fixture
def jwt_manager() -> JWTManager:
    return JWTManager(p.Secret(TEST_JWT_SECRET), algorithm="HS256", access_token_expire_minutes=30)


@pytest.fixture
def auth_headers(jwt_manager: JWTManager) -> t.Callable[[User], dict[str, str]]:
    """Bearer headers for a user, issued against the wall clock so PyJWT accepts them."""

    def headers(user: User) -> dict[str, str]:
        token = jwt_manager.create_access_token(user.user_id, user.role)
        return {"Authorization": f"Bearer {token}"}

    return headers
