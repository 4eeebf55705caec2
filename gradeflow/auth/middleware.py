"""FastAPI dependency that turns a bearer token into the acting user."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from gradeflow.core import di
from gradeflow.model import Actor
from gradeflow.storage import user as user_storage

from . import token as token_auth

bearer_scheme = HTTPBearer(auto_error=False)


def unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


@di.inject
def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Actor:
    """Resolve the request's bearer token to an ``Actor``.

    The token only identifies the user; the role comes from the stored user
    so that a role change takes effect before old tokens expire.
    """
    if credentials is None:
        raise unauthorized("Not authenticated")

    claims = token_auth.decode_token(credentials.credentials)
    if claims is None:
        raise unauthorized("Invalid or expired token")

    with session.begin():
        user = user_storage.get(user_id=claims.user_id, session=session)
    if user is None:
        raise unauthorized("User not found")
    return Actor(actor_id=user.user_id, role=user.role)
