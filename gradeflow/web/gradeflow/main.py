"""Main entry point for the grading web application."""

import os
import typing as t
from pathlib import Path

from fastapi import FastAPI

import gradeflow
from gradeflow.core import BootConfiguration, di, GradeflowContainer
from gradeflow.core.config.web import GradeflowWebSettings
from gradeflow.model import DeploymentEnvironment

from .route import router

BootVariable: t.Final[str] = "__Gradeflow_BOOT"

# modules whose injected defaults are resolved per request
WiredModules: t.Final[tuple[str, ...]] = (
    "gradeflow.web.gradeflow.main",
    "gradeflow.web.gradeflow.dependencies",
    "gradeflow.auth.middleware",
    "gradeflow.auth.token",
)


@di.inject
def _create_app(
    config: GradeflowWebSettings = di.Provide["config.web.gradeflow", di.as_(GradeflowWebSettings)],
    env: DeploymentEnvironment = di.Provide["env"],
    root_path: Path = di.Provide["root"],
) -> FastAPI:
    app = FastAPI(
        title="Gradeflow",
        description="Grade entry, correction and submission review",
        version=gradeflow.__version__,
        debug=env in (DeploymentEnvironment.Local, DeploymentEnvironment.Development),
    )
    app.state.settings = config
    app.state.root = root_path
    app.include_router(router)
    return app


def create_app() -> FastAPI:
    """Factory function for uvicorn."""
    boot_vars = os.getenv(BootVariable)
    if boot_vars:
        boot_cf = BootConfiguration.model_validate_json(boot_vars)
        ct = GradeflowContainer()
        GradeflowContainer.boot(ct, **dict(boot_cf), wiring=WiredModules)
        return _create_app(
            config=GradeflowWebSettings(**ct.config.web.gradeflow()),
            env=boot_cf.env,
            root_path=t.cast(Path, ct.root()),
        )
    return _create_app()
