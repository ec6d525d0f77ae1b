"""
Cadence - Common Schemas.

Shared Pydantic models used across all modules.
"""

from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

TagRole = Literal["viewer", "editor", "admin"]
TAG_ROLES: tuple[str, ...] = ("viewer", "editor", "admin")


# =============================================================================
# Error Responses
# =============================================================================


class ErrorDetail(BaseModel):
    """Error detail structure."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Additional context")
    request_id: UUID | None = Field(default=None, description="Request ID for tracing")


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: ErrorDetail


# =============================================================================
# Identity
# =============================================================================


class UserIdentity(BaseModel):
    """Minimal user identity used to enrich listings."""

    id: str
    name: str | None = None
    email: str | None = None


# =============================================================================
# Bulk results
# =============================================================================


class AppliedAssignment(BaseModel):
    """One (tag, user) application that committed."""

    tag: str
    user_id: str
    role: TagRole
    action: Literal["add", "update"]


class FailedAssignment(BaseModel):
    """One (tag, user) application that was rejected, with the reason."""

    tag: str
    user_id: str
    role: str | None = None
    code: str
    reason: str


class BulkAssignmentResult(BaseModel):
    """Partial-success result for batch permission writes."""

    succeeded: list[AppliedAssignment] = Field(default_factory=list)
    failed: list[FailedAssignment] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


# =============================================================================
# Health Check
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., pattern="^(healthy|degraded)$")
    version: str
    features: dict[str, bool]
    storage_backend: str | None = None
    app_env: str | None = None
    is_production: bool | None = None
