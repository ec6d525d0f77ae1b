"""
Cadence Audit - Schemas.

Pydantic models for tag permission audit entries.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from cadence.schemas import TagRole, UserIdentity

AuditAction = Literal["add", "update", "remove"]


class AuditLogCreate(BaseModel):
    """Input for appending an audit entry."""

    tag: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1, description="Target user")
    actor_id: str = Field(..., min_length=1, description="User who performed the change")
    action: AuditAction
    old_role: TagRole | None = None
    new_role: TagRole | None = None
    description: str | None = None


class AuditLogEntry(BaseModel):
    """Single audit entry (immutable)."""

    id: str
    tag: str
    user_id: str
    actor_id: str
    action: AuditAction
    old_role: TagRole | None = None
    new_role: TagRole | None = None
    description: str | None = None
    timestamp: datetime


class AuditLogRecord(AuditLogEntry):
    """Audit entry enriched with target and actor identities."""

    user: UserIdentity
    actor: UserIdentity
