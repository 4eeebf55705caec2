"""Container-backed helpers around the configured JWTManager."""

from __future__ import annotations

import datetime

from gradeflow.core import di
from gradeflow.model import UserID, UserRole

from .jwt import JWTManager, TokenData


@di.inject
def create_access_token(
    user_id: UserID,
    role: UserRole,
    expires_delta: datetime.timedelta | None = None,
    jwt_manager: JWTManager = di.Provide["auth.jwt_manager"],
) -> str:
    return jwt_manager.create_access_token(user_id, role, expires_delta=expires_delta)


@di.inject
def decode_token(token: str, jwt_manager: JWTManager = di.Provide["auth.jwt_manager"]) -> TokenData | None:
    return jwt_manager.decode_token(token)
