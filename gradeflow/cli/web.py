import os
import typing as t

import uvicorn

import gradeflow.lib.cli as click
from gradeflow.core import BootConfiguration, di
from gradeflow.core.config import LoggingSettings, WebSettings
from gradeflow.web.gradeflow.main import BootVariable

AppSpec: t.Final[str] = "gradeflow.web.gradeflow.main:create_app"


@click.group()
def web():
    """Run the grading API."""
    ...


@web.command(name="serve")
@click.option("-w", "--workers", type=click.IntRange(min=1), default=1)
@click.option("--reload", is_flag=True, default=False, help="restart the server when source files change")
@di.inject
def serve(
    workers: int,
    reload: bool,
    boot_cf: BootConfiguration = di.Provide["_boot_config"],
    logging_cf: LoggingSettings = di.Provide["config.logging", di.as_(LoggingSettings)],  # noqa: B008
    web_cf: WebSettings = di.Provide["config.web", di.as_(WebSettings)],  # noqa: B008
):
    """Start the API backend."""
    backend = web_cf.gradeflow.backend

    os.environ[BootVariable] = boot_cf.model_dump_json()
    uvicorn.run(
        AppSpec,
        factory=True,
        reload=reload,
        workers=workers,
        log_config=logging_cf.model_dump(),
        host=str(backend.host),
        port=backend.port,
    )
