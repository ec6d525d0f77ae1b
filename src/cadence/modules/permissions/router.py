"""Cadence Permissions - Router.

REST API endpoints for per-tag role assignments.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse

from cadence.auth import Actor, get_current_user
from cadence.deps import require_permissions
from cadence.exceptions import ForbiddenException
from cadence.modules.audit.schemas import AuditLogEntry
from cadence.modules.permissions.schemas import (
    BulkPermissionUpdate,
    EffectiveRoleResponse,
    PermissionAssign,
    PermissionEntry,
    PermissionImportRequest,
    PermissionRoleUpdate,
)
from cadence.modules.permissions.service import PermissionsService
from cadence.schemas import BulkAssignmentResult

router = APIRouter(prefix="/tags", tags=["Permissions"], dependencies=[require_permissions])


def get_service() -> PermissionsService:
    return PermissionsService()


async def ensure_can_edit(service: PermissionsService, user: Actor, tag: str) -> None:
    """Global admins, or users holding editor/admin on the tag (directly or inherited)."""
    if user.is_admin:
        return
    if not await service.can_edit_tag(user.id, tag):
        raise ForbiddenException(f"Editing permissions on '{tag}' requires editor or admin", required_role="editor")


@router.get("/permissions", response_model=dict[str, list[PermissionEntry]])
async def list_all_permissions(
    user: Actor = Depends(get_current_user),
    service: PermissionsService = Depends(get_service),
) -> dict[str, list[PermissionEntry]]:
    """Role assignments grouped by tag, limited to tags the actor may edit unless admin."""
    grouped = await service.list_all_permissions()
    if user.is_admin:
        return grouped
    return {tag: entries for tag, entries in grouped.items() if await service.can_edit_tag(user.id, tag)}


@router.post("/permissions/bulk", response_model=BulkAssignmentResult)
async def bulk_update_permissions(
    data: BulkPermissionUpdate,
    user: Actor = Depends(get_current_user),
    service: PermissionsService = Depends(get_service),
) -> BulkAssignmentResult:
    """Grant one role to several users on several tags."""
    for tag in data.tags:
        await ensure_can_edit(service, user, tag)
    return await service.bulk_update(data.user_ids, data.role, data.tags, user)


@router.post("/permissions/import", response_model=BulkAssignmentResult)
async def import_permissions(
    data: PermissionImportRequest,
    user: Actor = Depends(get_current_user),
    service: PermissionsService = Depends(get_service),
) -> BulkAssignmentResult:
    """Upsert permissions from CSV. Administrators only."""
    if not user.is_admin:
        raise ForbiddenException("Only administrators can import permissions", required_role="admin")
    return await service.import_csv(data.content, user)


@router.get("/{tag}/permissions", response_model=list[PermissionEntry])
async def list_permissions(
    tag: str,
    user: Actor = Depends(get_current_user),
    service: PermissionsService = Depends(get_service),
) -> list[PermissionEntry]:
    """Role assignments on one tag."""
    await ensure_can_edit(service, user, tag)
    return await service.list_permissions(tag)


@router.post("/{tag}/permissions", response_model=AuditLogEntry, status_code=status.HTTP_201_CREATED)
async def add_permission(
    tag: str,
    data: PermissionAssign,
    user: Actor = Depends(get_current_user),
    service: PermissionsService = Depends(get_service),
) -> AuditLogEntry:
    """Grant a role on a tag. 409 if the user already has one."""
    await ensure_can_edit(service, user, tag)
    return await service.add_permission(tag, data.user_id, data.role, user)


@router.get("/{tag}/permissions/export", response_class=PlainTextResponse)
async def export_permissions(
    tag: str,
    user: Actor = Depends(get_current_user),
    service: PermissionsService = Depends(get_service),
) -> PlainTextResponse:
    """Role assignments on one tag as CSV."""
    await ensure_can_edit(service, user, tag)
    content = await service.export_csv(tag)
    return PlainTextResponse(
        content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="permissions-{tag}.csv"'},
    )


@router.get("/{tag}/permissions/{user_id}/effective", response_model=EffectiveRoleResponse)
async def get_effective_role(
    tag: str,
    user_id: str,
    user: Actor = Depends(get_current_user),
    service: PermissionsService = Depends(get_service),
) -> EffectiveRoleResponse:
    """Role a user holds on a tag, including roles inherited from parent tags."""
    if user_id != user.id:
        await ensure_can_edit(service, user, tag)
    return EffectiveRoleResponse(
        tag=tag,
        user_id=user_id,
        role=await service.get_effective_role(user_id, tag),
    )


@router.patch("/{tag}/permissions/{user_id}", response_model=AuditLogEntry)
async def update_permission(
    tag: str,
    user_id: str,
    data: PermissionRoleUpdate,
    user: Actor = Depends(get_current_user),
    service: PermissionsService = Depends(get_service),
) -> AuditLogEntry:
    """Change an existing role."""
    await ensure_can_edit(service, user, tag)
    return await service.update_permission(tag, user_id, data.role, user)


@router.delete("/{tag}/permissions/{user_id}", response_model=AuditLogEntry)
async def remove_permission(
    tag: str,
    user_id: str,
    user: Actor = Depends(get_current_user),
    service: PermissionsService = Depends(get_service),
) -> AuditLogEntry:
    """Revoke a role."""
    await ensure_can_edit(service, user, tag)
    return await service.remove_permission(tag, user_id, user)
