"""
Cadence Templates - Schemas.

Pydantic models for reusable permission templates.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from cadence.schemas import BulkAssignmentResult, TagRole


class TemplateRole(BaseModel):
    """One user -> role assignment inside a template."""

    user_id: str = Field(..., min_length=1)
    role: TagRole


class PermissionTemplateCreate(BaseModel):
    """Request to create a template."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    roles: list[TemplateRole] = Field(..., min_length=1)


class PermissionTemplate(BaseModel):
    """A named, reusable bundle of role assignments."""

    id: str
    name: str
    description: str | None = None
    roles: list[TemplateRole]
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime


class TemplateApplyRequest(BaseModel):
    """Tags to apply a template to."""

    tags: list[str] = Field(..., min_length=1)


class TemplateApplyResult(BulkAssignmentResult):
    """Per (tag, user) outcome of applying a template."""

    template_id: str
    template_name: str
