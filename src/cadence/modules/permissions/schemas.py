"""
Cadence Permissions - Schemas.

Pydantic models for per-tag role assignments.
"""

from pydantic import BaseModel, Field

from cadence.schemas import TagRole, UserIdentity


class PermissionEntry(BaseModel):
    """One role assignment on a tag, with the user's identity."""

    user: UserIdentity
    role: TagRole


class PermissionAssign(BaseModel):
    """Body for granting a role."""

    user_id: str = Field(..., min_length=1)
    role: TagRole


class PermissionRoleUpdate(BaseModel):
    """Body for changing an existing role."""

    role: TagRole


class BulkPermissionUpdate(BaseModel):
    """Grant one role to many users on many tags."""

    user_ids: list[str] = Field(..., min_length=1)
    role: TagRole
    tags: list[str] = Field(..., min_length=1)


class PermissionImportRequest(BaseModel):
    """CSV body: header tag,user_id,user_name,user_email,role."""

    content: str = Field(..., min_length=1)


class EffectiveRoleResponse(BaseModel):
    """Role a user holds on a tag, directly or through a parent tag."""

    tag: str
    user_id: str
    role: TagRole | None = None
