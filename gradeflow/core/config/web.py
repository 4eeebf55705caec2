from __future__ import annotations

import typing as t

import annotated_types as ant
import pydantic as p

from .base import BaseSettings

Port = t.Annotated[int, ant.Ge(1), ant.Le(65535)]


class ServeSettings(BaseSettings):
    host: p.IPvAnyAddress
    port: Port


class AuthSettings(BaseSettings):
    jwt_algorithm: t.Literal["HS256", "HS384", "HS512"] = "HS256"
    access_token_expire_minutes: t.Annotated[int, ant.Ge(1)] = 60


class GradeflowWebSettings(BaseSettings):
    """The grading API: where it listens and how it signs bearer tokens."""

    backend: ServeSettings
    auth: AuthSettings = p.Field(default_factory=AuthSettings)


class WebSettings(BaseSettings):
    gradeflow: GradeflowWebSettings
