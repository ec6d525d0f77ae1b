"""Cadence Templates - Router.

REST API endpoints for permission templates.
"""

from fastapi import APIRouter, Depends, status

from cadence.auth import Actor, get_current_user
from cadence.deps import require_templates
from cadence.exceptions import ForbiddenException
from cadence.modules.permissions.router import ensure_can_edit
from cadence.modules.templates.schemas import (
    PermissionTemplate,
    PermissionTemplateCreate,
    TemplateApplyRequest,
    TemplateApplyResult,
)
from cadence.modules.templates.service import TemplatesService

router = APIRouter(prefix="/tags/templates", tags=["Templates"], dependencies=[require_templates])


def get_service() -> TemplatesService:
    return TemplatesService()


@router.get("", response_model=list[PermissionTemplate])
async def list_templates(
    user: Actor = Depends(get_current_user),
    service: TemplatesService = Depends(get_service),
) -> list[PermissionTemplate]:
    """List templates, most recently updated first."""
    return await service.list_templates()


@router.post("", response_model=PermissionTemplate, status_code=status.HTTP_201_CREATED)
async def create_template(
    data: PermissionTemplateCreate,
    user: Actor = Depends(get_current_user),
    service: TemplatesService = Depends(get_service),
) -> PermissionTemplate:
    """Create a template. Administrators only."""
    if not user.is_admin:
        raise ForbiddenException("Only administrators can create templates", required_role="admin")
    return await service.create_template(data.name, data.roles, user, description=data.description)


@router.get("/{template_id}", response_model=PermissionTemplate)
async def get_template(
    template_id: str,
    user: Actor = Depends(get_current_user),
    service: TemplatesService = Depends(get_service),
) -> PermissionTemplate:
    return await service.get_template(template_id)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: str,
    user: Actor = Depends(get_current_user),
    service: TemplatesService = Depends(get_service),
):
    """Delete a template. Administrators only."""
    if not user.is_admin:
        raise ForbiddenException("Only administrators can delete templates", required_role="admin")
    await service.delete_template(template_id, user)
    return None


@router.post("/{template_id}/apply", response_model=TemplateApplyResult)
async def apply_template(
    template_id: str,
    data: TemplateApplyRequest,
    user: Actor = Depends(get_current_user),
    service: TemplatesService = Depends(get_service),
) -> TemplateApplyResult:
    """Apply a template to tags; reports succeeded and failed assignments."""
    for tag in data.tags:
        await ensure_can_edit(service.permissions, user, tag)
    return await service.apply_template(template_id, data.tags, user)
