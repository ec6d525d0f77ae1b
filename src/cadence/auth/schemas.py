"""
Cadence Auth - Schemas.

Pydantic models for the authenticated actor.
"""

from pydantic import BaseModel, Field


class TokenPayload(BaseModel):
    """Decoded access token claims."""

    sub: str = Field(..., description="User ID")
    name: str | None = None
    email: str | None = None
    roles: list[str] = Field(default_factory=lambda: ["user"])
    exp: int | None = None
    iat: int | None = None


class Actor(BaseModel):
    """Authenticated user performing a request."""

    id: str
    name: str | None = None
    email: str | None = None
    roles: list[str] = Field(default_factory=lambda: ["user"])

    @property
    def is_admin(self) -> bool:
        """Global administrators may govern every tag."""
        return "admin" in self.roles or "owner" in self.roles

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.id
