"""Tests for gradeflow.auth.jwt."""

from __future__ import annotations

import datetime

import jwt
import pydantic as p

from gradeflow.auth import JWTManager
from gradeflow.model import UserID, UserRole


class TestJWTManager(object):
    def test_round_trip(self, jwt_manager: JWTManager) -> None:
        """A freshly issued token decodes to the same user and role."""
        user_id = UserID()
        token = jwt_manager.create_access_token(user_id, UserRole.Teacher)

        data = jwt_manager.decode_token(token)

        assert data is not None
        assert data.user_id == user_id
        assert data.role is UserRole.Teacher
        assert data.expires_at - data.issued_at == datetime.timedelta(minutes=30)

    def test_expired_token(self, jwt_manager: JWTManager) -> None:
        """decode_token() returns None for an expired token."""
        issued = datetime.datetime.now(datetime.UTC) - datetime.timedelta(hours=2)
        token = jwt_manager.create_access_token(UserID(), UserRole.Admin, now=issued)

        assert jwt_manager.decode_token(token) is None

    def test_wrong_secret(self, jwt_manager: JWTManager) -> None:
        """decode_token() returns None for a token signed with another key."""
        other = JWTManager(p.Secret("some-other-secret-value-for-tests"))
        token = other.create_access_token(UserID(), UserRole.Admin)

        assert jwt_manager.decode_token(token) is None

    def test_unknown_role(self, jwt_manager: JWTManager) -> None:
        """decode_token() returns None when the role claim is not a known role."""
        now = int(datetime.datetime.now(datetime.UTC).timestamp())
        token = jwt.encode(
            {"sub": str(UserID()), "role": "principal", "exp": now + 600, "iat": now},
            jwt_manager.secret_key,
            algorithm=jwt_manager.algorithm,
        )

        assert jwt_manager.decode_token(token) is None

    def test_malformed_subject(self, jwt_manager: JWTManager) -> None:
        """decode_token() returns None when the subject is not a user id."""
        now = int(datetime.datetime.now(datetime.UTC).timestamp())
        token = jwt.encode(
            {"sub": "not-a-user", "role": "admin", "exp": now + 600, "iat": now},
            jwt_manager.secret_key,
            algorithm=jwt_manager.algorithm,
        )

        assert jwt_manager.decode_token(token) is None
