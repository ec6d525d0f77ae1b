"""Cadence Hierarchy - Router.

REST API endpoints for the tag hierarchy.
"""

from fastapi import APIRouter, Depends, status

from cadence.auth import Actor, get_current_user
from cadence.deps import require_hierarchy
from cadence.exceptions import ForbiddenException
from cadence.modules.hierarchy.schemas import (
    HierarchyEdge,
    HierarchyRelationRequest,
    HierarchyValidation,
    TagHierarchyNode,
    TagLineageResponse,
    TagPathResponse,
)
from cadence.modules.hierarchy.service import HierarchyService

router = APIRouter(prefix="/tags", tags=["Hierarchy"], dependencies=[require_hierarchy])


def get_service() -> HierarchyService:
    return HierarchyService()


def _require_admin(user: Actor) -> None:
    if not user.is_admin:
        raise ForbiddenException("Only administrators can edit the tag hierarchy", required_role="admin")


@router.get("/hierarchy", response_model=dict[str, TagHierarchyNode])
async def get_hierarchy(
    user: Actor = Depends(get_current_user),
    service: HierarchyService = Depends(get_service),
) -> dict[str, TagHierarchyNode]:
    """Map every related tag to its parents and children."""
    return await service.get_hierarchy()


@router.post("/hierarchy", response_model=HierarchyEdge, status_code=status.HTTP_201_CREATED)
async def add_relation(
    data: HierarchyRelationRequest,
    user: Actor = Depends(get_current_user),
    service: HierarchyService = Depends(get_service),
) -> HierarchyEdge:
    """Create a parent -> child relation."""
    _require_admin(user)
    return await service.add_relation(data.parent_tag, data.child_tag)


@router.delete("/hierarchy", status_code=status.HTTP_204_NO_CONTENT)
async def remove_relation(
    data: HierarchyRelationRequest,
    user: Actor = Depends(get_current_user),
    service: HierarchyService = Depends(get_service),
):
    """Remove a parent -> child relation."""
    _require_admin(user)
    await service.remove_relation(data.parent_tag, data.child_tag)
    return None


@router.get("/hierarchy/validation", response_model=HierarchyValidation)
async def get_hierarchy_validation(
    user: Actor = Depends(get_current_user),
    service: HierarchyService = Depends(get_service),
) -> HierarchyValidation:
    """Report cycles and duplicate relations in the stored hierarchy."""
    return await service.validate()


@router.get("/{tag}/hierarchy", response_model=TagHierarchyNode)
async def get_tag_hierarchy(
    tag: str,
    user: Actor = Depends(get_current_user),
    service: HierarchyService = Depends(get_service),
) -> TagHierarchyNode:
    """Direct parents and children of one tag."""
    return await service.get_tag_hierarchy(tag)


@router.get("/{tag}/lineage", response_model=TagLineageResponse)
async def get_tag_lineage(
    tag: str,
    user: Actor = Depends(get_current_user),
    service: HierarchyService = Depends(get_service),
) -> TagLineageResponse:
    """All ancestors and descendants of one tag."""
    return TagLineageResponse(
        tag=tag,
        ancestors=await service.ancestors(tag),
        descendants=await service.descendants(tag),
    )


@router.get("/{tag}/path", response_model=TagPathResponse)
async def get_tag_path(
    tag: str,
    user: Actor = Depends(get_current_user),
    service: HierarchyService = Depends(get_service),
) -> TagPathResponse:
    """Path from a root tag down to this tag."""
    return TagPathResponse(tag=tag, path=await service.find_path(tag))
