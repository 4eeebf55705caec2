from __future__ import annotations

from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Provider, Singleton

from gradeflow.auth.jwt import JWTManager


class AuthContainer(DeclarativeContainer):
    """Token issuing and verification, keyed from ``web.gradeflow.auth`` and the ``auth`` secrets."""

    config: Configuration = Configuration()
    secrets: Configuration = Configuration()

    jwt_manager: Provider[JWTManager] = Singleton(
        JWTManager,
        secrets.jwt,
        config.jwt_algorithm,
        config.access_token_expire_minutes,
    )
