import typing as t

from pydantic_settings import BaseSettings as PydanticBaseSettings
from pydantic_settings import SettingsConfigDict

from gradeflow.model import BaseModel


class BaseSettings(PydanticBaseSettings, BaseModel):  # pyright: ignore [reportIncompatibleVariableOverride]
    """Settings section; logging sections rely on aliases such as ``()`` and ``class`` surviving a dump."""

    model_config = SettingsConfigDict(env_prefix="GRADEFLOW_", extra="ignore", serialize_by_alias=True)

    def __init__(self, cf: t.Mapping[str, t.Any] | None = None, **kwargs: t.Any):
        # the container hands sections out as plain dicts
        super().__init__(**{**(cf or {}), **kwargs})


class BaseSecrets(BaseSettings):
    """Settings whose values never appear in YAML on disk."""
