from __future__ import annotations

import pydantic as p
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from gradeflow.model import DeploymentEnvironment

from .base import BaseSecrets


class PostgresqlSecrets(BaseSecrets):
    username: p.Secret[str] | None = None
    password: p.Secret[str] | None = None


class AuthSecrets(BaseSecrets):
    """Authentication secrets."""

    jwt: p.Secret[str]


class Secrets(BaseSecrets):
    """Secrets are read from the process environment, e.g.

    GRADEFLOW_SECRETS_AUTH__JWT=...
    GRADEFLOW_SECRETS_POSTGRESQL__PASSWORD=...
    """

    model_config = SettingsConfigDict(env_prefix="GRADEFLOW_SECRETS_", env_nested_delimiter="__", extra="ignore")

    env: DeploymentEnvironment

    auth: AuthSecrets | None = None
    postgresql: PostgresqlSecrets = p.Field(default_factory=PostgresqlSecrets)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, env_settings
