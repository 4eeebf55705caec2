"""Authentication utilities."""

__all__ = [
    "JWTManager",
    "TokenData",
    "create_access_token",
    "decode_token",
    "get_current_actor",
]

from .jwt import JWTManager, TokenData
from .middleware import get_current_actor
from .token import create_access_token, decode_token
