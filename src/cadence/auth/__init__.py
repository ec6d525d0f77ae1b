"""Cadence Auth Module.

Requests authenticate with short-lived JWT access tokens. Sign-in itself is
handled by the wider application; this package only turns a Bearer token
into an Actor.
"""

from cadence.auth.jwt_access import create_access_token, get_current_user
from cadence.auth.schemas import Actor, TokenPayload

__all__ = [
    "get_current_user",
    "create_access_token",
    "Actor",
    "TokenPayload",
]
