from __future__ import annotations

import sys
import types
import typing as t
from pathlib import Path

import pydantic as p
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Object, Provider, Resource, Singleton

import gradeflow
from gradeflow.model import BaseModel, DeploymentEnvironment

from ..config import Secrets, Settings
from ..di import NotReady
from ..provider import LoggingProvider, TimestampProvider, utcnow
from .auth import AuthContainer
from .storage import StorageContainer

# storage functions take their session from the container
WiredPackages: t.Final[tuple[str, ...]] = ("gradeflow.storage",)


class BootConfiguration(BaseModel):
    """Everything needed to boot a container again, e.g. inside a uvicorn worker."""

    debug: bool
    env: DeploymentEnvironment
    config_root: p.AnyUrl
    override: tuple[str, ...]

    def load_settings(self) -> Settings:
        if self.config_root.scheme != "file":
            raise ValueError(f"unsupported scheme for config root: {self.config_root.scheme}")
        return Settings(env=self.env, root=self.config_root, override=self.override)


class GradeflowContainer(DeclarativeContainer):
    config: Configuration = Configuration()
    secrets: Configuration = Configuration()

    debug: Provider[bool] = Singleton(bool)
    env: Provider[DeploymentEnvironment] = Object(DeploymentEnvironment.Local)
    root: Object[NotReady | Path] = Object(NotReady())

    logging: Provider[LoggingProvider] = Resource(LoggingProvider, config=config.logging, debug=debug)
    storage: Provider[StorageContainer] = Container(
        StorageContainer, config=config.storage, secrets=secrets, logging=logging, root=root
    )
    auth: Provider[AuthContainer] = Container(AuthContainer, config=config.web.gradeflow.auth, secrets=secrets.auth)

    # deadline checks and audit timestamps all read the clock through here
    utcnow: Provider[TimestampProvider] = Object(utcnow)

    _boot_config: Provider[BootConfiguration | NotReady] = Object(NotReady())

    @staticmethod
    def boot(
        ct: GradeflowContainer,
        /,
        debug: bool,
        env: DeploymentEnvironment,
        config_root: p.FileUrl | p.AnyUrl,
        override: t.Sequence[str] | None = None,
        wiring: t.Sequence[str | types.ModuleType] = (),
    ) -> BootConfiguration:
        """Load settings and secrets for ``env`` into ``ct`` and wire the gradeflow modules."""
        boot_cf = BootConfiguration(debug=debug, env=env, config_root=config_root, override=tuple(override or ()))
        settings = boot_cf.load_settings()

        ct.config.from_pydantic(settings)
        ct.debug.override(debug)
        ct.env.override(env)
        ct.root.override(Path(gradeflow.__file__).resolve().parents[1])

        ct.wire(packages=list(WiredPackages), modules=list(wiring))
        loaded = [mod for name, mod in sys.modules.items() if name.startswith("gradeflow.")]
        ct.wire(modules=loaded)

        logger = ct.logging().get_logger()
        if settings.override:
            logger.info("configuration overridden from the command line", extra={"override": list(settings.override)})

        ct.secrets.from_pydantic(Secrets(env=env))
        ct._boot_config.override(boot_cf)

        logger.debug("container booted", extra={"config": str(config_root), "env": env.value, "debug": debug})
        return boot_cf
