"""Cadence Auth - JWT access tokens.

This module implements:
- Issuing short-lived JWTs (HS256 by default)
- A FastAPI dependency that authenticates requests using these tokens

Missing or invalid tokens raise UnauthorizedException (401).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Annotated, Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from cadence.auth.schemas import Actor, TokenPayload
from cadence.config import Settings, get_settings
from cadence.exceptions import UnauthorizedException

security = HTTPBearer(auto_error=False)

DEV_ACTOR = Actor(id="dev-admin", name="Dev Admin", email="dev@localhost", roles=["admin"])


def create_access_token(
    *,
    settings: Settings,
    user_id: str,
    name: str | None = None,
    email: str | None = None,
    roles: list[str] | None = None,
    now: datetime | None = None,
) -> tuple[str, int]:
    """Create a signed access token and return (token, expires_in_seconds)."""

    if now is None:
        now = datetime.now(timezone.utc)

    ttl_s = int(settings.auth_access_token_ttl_seconds)
    exp = now + timedelta(seconds=ttl_s)

    payload: dict[str, Any] = {
        "sub": user_id,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
        "roles": roles or ["user"],
        "typ": "access",
        "iss": "cadence",
    }
    if name is not None:
        payload["name"] = name
    if email is not None:
        payload["email"] = email

    token = jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)
    return token, ttl_s


def _decode_access_token(token: str, settings: Settings) -> TokenPayload:
    try:
        payload = jwt.decode(token, settings.auth_jwt_secret, algorithms=[settings.auth_jwt_algorithm])
    except JWTError as e:
        raise UnauthorizedException(f"Invalid token: {e}")

    if payload.get("typ") != "access":
        raise UnauthorizedException("Invalid token type")

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        raise UnauthorizedException("Malformed token payload")

    roles_raw = payload.get("roles")
    if not (isinstance(roles_raw, list) and all(isinstance(r, str) for r in roles_raw)):
        payload["roles"] = ["user"]

    return TokenPayload.model_validate(payload)


async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Actor:
    """Authenticate the request and return the acting user."""

    if not credentials:
        if settings.auth_insecure_dev_bypass and not settings.is_production:
            request.state.user = DEV_ACTOR.model_dump()
            return DEV_ACTOR
        raise UnauthorizedException("Missing authentication token")

    token = (credentials.credentials or "").strip()
    if not token or any(ch.isspace() for ch in token):
        raise UnauthorizedException("Invalid authentication token")

    claims = _decode_access_token(token, settings)
    actor = Actor(id=claims.sub, name=claims.name, email=claims.email, roles=claims.roles)

    request.state.user = actor.model_dump()
    return actor

