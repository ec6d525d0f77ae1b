"""
Cadence Templates - Service.

Named bundles of (user, role) assignments applied to many tags at once.
"""

import logging
from typing import Any, Iterable
from uuid import uuid4

from cadence.auth.schemas import Actor
from cadence.core import get_store
from cadence.core.store import GovernanceStore, utc_now_iso
from cadence.core.validation import require_tag
from cadence.exceptions import NotFoundException, ValidationException
from cadence.modules.permissions.service import PermissionsService
from cadence.modules.templates.schemas import (
    PermissionTemplate,
    TemplateApplyResult,
    TemplateRole,
)

logger = logging.getLogger(__name__)


class TemplatesService:
    """Creates, lists and applies permission templates."""

    def __init__(
        self,
        store: GovernanceStore | None = None,
        permissions: PermissionsService | None = None,
    ):
        self.store = store or get_store()
        self.permissions = permissions or PermissionsService(self.store)

    async def create_template(
        self,
        name: str,
        roles: list[TemplateRole],
        actor: Actor,
        description: str | None = None,
    ) -> PermissionTemplate:
        """Create a template with a fresh id; created_at == updated_at."""
        if not name or not name.strip():
            raise ValidationException("Template name is required")

        seen: set[str] = set()
        for r in roles:
            if r.user_id in seen:
                raise ValidationException(
                    f"User {r.user_id} appears more than once in the template",
                    errors=[{"field": "roles", "user_id": r.user_id}],
                )
            seen.add(r.user_id)

        now = utc_now_iso()
        data = {
            "id": str(uuid4()),
            "name": name.strip(),
            "description": description,
            "roles": [r.model_dump() for r in roles],
            "created_by": actor.id,
            "created_at": now,
            "updated_at": now,
        }
        created = await self.store.insert_template(data)
        logger.info(f"[TEMPLATE] created '{data['name']}' ({data['id']}) by {actor.id}")
        return self._to_template(created)

    async def list_templates(self) -> list[PermissionTemplate]:
        """Templates, most recently updated first."""
        return [self._to_template(t) for t in await self.store.list_templates()]

    async def get_template(self, template_id: str) -> PermissionTemplate:
        template = await self.store.get_template(template_id)
        if not template:
            raise NotFoundException("permission template", template_id)
        return self._to_template(template)

    async def delete_template(self, template_id: str, actor: Actor) -> None:
        if not await self.store.delete_template(template_id):
            raise NotFoundException("permission template", template_id)
        logger.info(f"[TEMPLATE] deleted {template_id} by {actor.id}")

    async def apply_template(self, template_id: str, tags: Iterable[str], actor: Actor) -> TemplateApplyResult:
        """
        Upsert every template role on every tag.

        Each (tag, user) application is independent: a failure is reported
        in the result and the remaining applications still run.
        """
        template = await self.get_template(template_id)
        unique_tags = list(dict.fromkeys(tags))
        for tag in unique_tags:
            require_tag(tag)

        result = TemplateApplyResult(template_id=template.id, template_name=template.name)
        description = f'通过模板 "{template.name}" 添加权限'
        for tag in unique_tags:
            for r in template.roles:
                await self.permissions.apply_assignment(result, tag, r.user_id, r.role, actor, description)

        logger.info(
            f"[TEMPLATE] applied '{template.name}' to {len(unique_tags)} tag(s) by {actor.id}: "
            f"{result.success_count} succeeded, {result.failed_count} failed"
        )
        return result

    def _to_template(self, data: dict[str, Any]) -> PermissionTemplate:
        return PermissionTemplate.model_validate(data)
