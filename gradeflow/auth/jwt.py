"""Signing and verification of bearer tokens."""

from __future__ import annotations

import datetime
import typing as t

import jwt
import pydantic as p

from gradeflow.model import UserID, UserRole

Algorithm = t.Literal["HS256", "HS384", "HS512"]


class TokenData(p.BaseModel):
    """The verified claims of an access token."""

    model_config = p.ConfigDict(frozen=True)

    user_id: UserID = p.Field(validation_alias="sub")
    role: UserRole
    expires_at: datetime.datetime = p.Field(validation_alias="exp")
    issued_at: datetime.datetime = p.Field(validation_alias="iat")


class JWTManager(object):
    """Issues access tokens for users and verifies the ones presented back."""

    def __init__(
        self,
        secret_key: p.Secret[str],
        algorithm: Algorithm = "HS256",
        access_token_expire_minutes: int = 60,
    ) -> None:
        if access_token_expire_minutes < 1:
            raise ValueError("access tokens must live for at least a minute")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._lifetime = datetime.timedelta(minutes=access_token_expire_minutes)

    @property
    def secret_key(self) -> str:
        return self._secret_key.get_secret_value()

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def lifetime(self) -> datetime.timedelta:
        return self._lifetime

    def create_access_token(
        self,
        user_id: UserID,
        role: UserRole,
        expires_delta: datetime.timedelta | None = None,
        now: datetime.datetime | None = None,
    ) -> str:
        issued = now or datetime.datetime.now(datetime.UTC)
        expires = issued + (expires_delta or self._lifetime)
        claims = {
            "sub": str(user_id),
            "role": role.value,
            "iat": int(issued.timestamp()),
            "exp": int(expires.timestamp()),
        }
        return jwt.encode(claims, self.secret_key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> TokenData | None:
        """Verify ``token`` and return its claims.

        Returns None when the signature or expiry check fails, or when the
        claims do not name a user id and a known role.
        """
        try:
            claims = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self._algorithm],
                options={"require": ["sub", "role", "exp", "iat"]},
            )
        except jwt.InvalidTokenError:
            return None
        try:
            return TokenData.model_validate(claims)
        except p.ValidationError:
            return None
