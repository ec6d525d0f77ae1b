"""Cadence Versions - Router.

REST API endpoints for tag version history.
"""

from fastapi import APIRouter, Depends, Query, status

from cadence.auth import Actor, get_current_user
from cadence.deps import require_versions
from cadence.modules.permissions.router import ensure_can_edit
from cadence.modules.permissions.service import PermissionsService
from cadence.modules.versions.schemas import (
    ChangeAuthorRef,
    CommitChangesRequest,
    MergeConflictReport,
    MergeVersionsRequest,
    TagVersion,
    TagVersionDiff,
)
from cadence.modules.versions.service import VersionService

router = APIRouter(prefix="/tags", tags=["Versions"], dependencies=[require_versions])


def get_service() -> VersionService:
    return VersionService()


def get_permissions() -> PermissionsService:
    return PermissionsService()


def _author(user: Actor) -> ChangeAuthorRef:
    return ChangeAuthorRef(id=user.id, name=user.display_name)


@router.get("/{tag}/versions", response_model=list[TagVersion])
async def list_versions(
    tag: str,
    user: Actor = Depends(get_current_user),
    service: VersionService = Depends(get_service),
) -> list[TagVersion]:
    """Version history of a tag, newest first."""
    return await service.list_versions(tag)


@router.post("/{tag}/versions", response_model=TagVersion, status_code=status.HTTP_201_CREATED)
async def commit_changes(
    tag: str,
    data: CommitChangesRequest,
    user: Actor = Depends(get_current_user),
    service: VersionService = Depends(get_service),
    permissions: PermissionsService = Depends(get_permissions),
) -> TagVersion:
    """Seal the submitted changes into the tag's next version."""
    await ensure_can_edit(permissions, user, tag)
    return await service.commit_changes(tag, data.changes, author=_author(user))


@router.post("/{tag}/versions/{version}/revert", response_model=TagVersion, status_code=status.HTTP_201_CREATED)
async def revert_version(
    tag: str,
    version: int,
    user: Actor = Depends(get_current_user),
    service: VersionService = Depends(get_service),
    permissions: PermissionsService = Depends(get_permissions),
) -> TagVersion:
    """Record a revert to an earlier version as a new version."""
    await ensure_can_edit(permissions, user, tag)
    return await service.revert(tag, version, author=_author(user))


@router.get("/{tag}/versions/compare", response_model=TagVersionDiff)
async def compare_versions(
    tag: str,
    from_version: int = Query(..., ge=1),
    to_version: int = Query(..., ge=1),
    user: Actor = Depends(get_current_user),
    service: VersionService = Depends(get_service),
) -> TagVersionDiff:
    """Changes added, removed or reworded between two versions."""
    return await service.compare(tag, from_version, to_version)


@router.get("/{tag}/versions/conflicts", response_model=MergeConflictReport)
async def check_merge_conflicts(
    tag: str,
    version_a: int = Query(..., ge=1),
    version_b: int = Query(..., ge=1),
    user: Actor = Depends(get_current_user),
    service: VersionService = Depends(get_service),
) -> MergeConflictReport:
    return await service.check_conflicts(tag, version_a, version_b)


@router.post("/{tag}/versions/merge", response_model=TagVersion, status_code=status.HTTP_201_CREATED)
async def merge_versions(
    tag: str,
    data: MergeVersionsRequest,
    user: Actor = Depends(get_current_user),
    service: VersionService = Depends(get_service),
    permissions: PermissionsService = Depends(get_permissions),
) -> TagVersion:
    """Merge two versions into a new one. 409 when they conflict."""
    await ensure_can_edit(permissions, user, tag)
    return await service.merge(tag, data.version_a, data.version_b, author=_author(user))


@router.delete("/{tag}/versions/{version_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_version(
    tag: str,
    version_id: str,
    user: Actor = Depends(get_current_user),
    service: VersionService = Depends(get_service),
    permissions: PermissionsService = Depends(get_permissions),
):
    """Delete one version by id."""
    await ensure_can_edit(permissions, user, tag)
    await service.delete_version(tag, version_id)
    return None
