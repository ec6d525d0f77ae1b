"""
Cadence Permissions - Service.

Business logic for per-tag roles. Every write goes through the store's
atomic mutate-and-audit call, then notifies the affected user.

Policy:
- add rejects a (tag, user) pair that already has a role
- update and remove require an existing role
- set_permission is the explicit upsert used by bulk paths only
"""

import csv
import io
import logging
from typing import Any

from cadence.auth.schemas import Actor
from cadence.core import get_store
from cadence.core.store import GovernanceStore, PermissionMode
from cadence.core.validation import require_role, require_tag, require_user_id
from cadence.exceptions import CadenceException, ValidationException
from cadence.modules.audit.schemas import AuditLogEntry
from cadence.modules.audit.service import to_audit_entry
from cadence.modules.hierarchy.service import build_hierarchy_map
from cadence.modules.notifications.service import NotificationService
from cadence.modules.permissions.schemas import PermissionEntry
from cadence.schemas import AppliedAssignment, BulkAssignmentResult, FailedAssignment, UserIdentity

logger = logging.getLogger(__name__)

EXPORT_FIELDS = ["tag", "user_id", "user_name", "user_email", "role"]
EDIT_ROLES = frozenset({"admin", "editor"})
VIEW_ROLES = frozenset({"admin", "editor", "viewer"})


class PermissionsService:
    """Manages tag role assignments with an audit trail."""

    def __init__(
        self,
        store: GovernanceStore | None = None,
        notifications: NotificationService | None = None,
    ):
        self.store = store or get_store()
        self.notifications = notifications or NotificationService(self.store)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def list_permissions(self, tag: str) -> list[PermissionEntry]:
        """All role assignments on a tag, with user identities."""
        require_tag(tag)
        rows = await self.store.list_permissions(tag)
        return await self._to_entries(rows)

    async def list_all_permissions(self) -> dict[str, list[PermissionEntry]]:
        """Role assignments grouped by tag."""
        rows = await self.store.list_permissions()
        entries = await self._to_entries(rows)

        grouped: dict[str, list[PermissionEntry]] = {}
        for row, entry in zip(rows, entries):
            grouped.setdefault(row["tag"], []).append(entry)
        return grouped

    async def get_user_role(self, user_id: str, tag: str) -> str | None:
        return await self.store.get_role(tag, user_id)

    async def get_effective_role(self, user_id: str, tag: str) -> str | None:
        """
        Direct role on the tag, else the first role inherited from a parent.

        Parents are searched depth-first in edge order.
        """
        direct = await self.store.get_role(tag, user_id)
        if direct:
            return direct

        hierarchy = build_hierarchy_map(await self.store.list_edges())
        visited = {tag}
        stack = list(reversed(hierarchy[tag].parents)) if tag in hierarchy else []
        while stack:
            parent = stack.pop()
            if parent in visited:
                continue
            visited.add(parent)

            role = await self.store.get_role(parent, user_id)
            if role:
                return role
            if parent in hierarchy:
                stack.extend(reversed(hierarchy[parent].parents))
        return None

    async def can_edit_tag(self, user_id: str, tag: str) -> bool:
        return await self.get_effective_role(user_id, tag) in EDIT_ROLES

    async def can_view_tag(self, user_id: str, tag: str) -> bool:
        return await self.get_effective_role(user_id, tag) in VIEW_ROLES

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def add_permission(self, tag: str, user_id: str, role: str, actor: Actor) -> AuditLogEntry:
        """Grant a role. Raises DuplicateAssignmentException if one exists."""
        require_role(role)
        return await self._commit("add", tag, user_id, role, actor)

    async def update_permission(self, tag: str, user_id: str, role: str, actor: Actor) -> AuditLogEntry:
        """Change an existing role. Raises NotFoundException if there is none."""
        require_role(role)
        return await self._commit("update", tag, user_id, role, actor)

    async def remove_permission(self, tag: str, user_id: str, actor: Actor) -> AuditLogEntry:
        """Revoke a role. Raises NotFoundException if there is none."""
        return await self._commit("remove", tag, user_id, None, actor)

    async def set_permission(
        self,
        tag: str,
        user_id: str,
        role: str,
        actor: Actor,
        description: str | None = None,
    ) -> AuditLogEntry:
        """Grant or overwrite a role (add or update, recorded accordingly)."""
        require_role(role)
        return await self._commit("upsert", tag, user_id, role, actor, description)

    async def bulk_update(
        self,
        user_ids: list[str],
        role: str,
        tags: list[str],
        actor: Actor,
    ) -> BulkAssignmentResult:
        """Upsert one role for every (tag, user) pair; failures do not stop the batch."""
        result = BulkAssignmentResult()
        for tag in tags:
            for user_id in user_ids:
                await self.apply_assignment(result, tag, user_id, role, actor, "批量更新权限")

        logger.info(
            f"[AUDIT] bulk update by {actor.id}: "
            f"{result.success_count} succeeded, {result.failed_count} failed"
        )
        return result

    # -------------------------------------------------------------------------
    # CSV import / export
    # -------------------------------------------------------------------------

    async def export_csv(self, tag: str) -> str:
        """Permissions of one tag as CSV."""
        entries = await self.list_permissions(tag)

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=EXPORT_FIELDS, lineterminator="\n")
        writer.writeheader()
        for entry in entries:
            writer.writerow({
                "tag": tag,
                "user_id": entry.user.id,
                "user_name": entry.user.name or "",
                "user_email": entry.user.email or "",
                "role": entry.role,
            })
        return buffer.getvalue()

    async def import_csv(self, content: str, actor: Actor) -> BulkAssignmentResult:
        """Upsert every row of an exported CSV. Name and email columns are ignored."""
        reader = csv.DictReader(io.StringIO(content.strip()))
        missing = {"tag", "user_id", "role"} - set(reader.fieldnames or [])
        if missing:
            raise ValidationException(
                "CSV header is missing required columns",
                errors=[{"field": name} for name in sorted(missing)],
            )

        result = BulkAssignmentResult()
        for row in reader:
            tag = (row.get("tag") or "").strip()
            user_id = (row.get("user_id") or "").strip()
            role = (row.get("role") or "").strip()
            await self.apply_assignment(result, tag, user_id, role, actor, "通过导入添加/更新权限")

        logger.info(
            f"[AUDIT] import by {actor.id}: "
            f"{result.success_count} succeeded, {result.failed_count} failed"
        )
        return result

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def apply_assignment(
        self,
        result: BulkAssignmentResult,
        tag: str,
        user_id: str,
        role: str,
        actor: Actor,
        description: str,
    ) -> None:
        """Upsert one (tag, user) pair and record the outcome in result instead of raising."""
        try:
            entry = await self.set_permission(tag, user_id, role, actor, description)
        except CadenceException as e:
            logger.warning(f"Failed to set {role} for {user_id} on '{tag}': {e.message}")
            result.failed.append(
                FailedAssignment(tag=tag, user_id=user_id, role=role, code=e.code, reason=e.message)
            )
            return
        result.succeeded.append(
            AppliedAssignment(tag=tag, user_id=user_id, role=role, action=entry.action)
        )

    async def _commit(
        self,
        mode: PermissionMode,
        tag: str,
        user_id: str,
        role: str | None,
        actor: Actor,
        description: str | None = None,
    ) -> AuditLogEntry:
        require_tag(tag)
        require_user_id(user_id)

        created = await self.store.apply_permission_change(
            tag=tag,
            user_id=user_id,
            mode=mode,
            role=role,
            actor_id=actor.id,
            description=description,
        )
        entry = to_audit_entry(created)
        logger.info(
            f"[AUDIT] {entry.action} {tag} {user_id} "
            f"{entry.old_role or '-'} -> {entry.new_role or '-'} by {actor.id}"
        )

        await self._notify(entry, actor)
        return entry

    async def _notify(self, entry: AuditLogEntry, actor: Actor) -> None:
        """Tell the target user. The permission change has already committed."""
        role = entry.new_role or entry.old_role
        try:
            identities = await self.store.get_identities([entry.user_id])
            target = identities.get(entry.user_id, {})
            await self.notifications.notify_permission_change(
                tag=entry.tag,
                target_id=entry.user_id,
                target_name=target.get("name") or entry.user_id,
                role=role,
                action=entry.action,
                actor_name=actor.display_name,
            )
        except CadenceException as e:
            logger.warning(f"Notification for {entry.user_id} on '{entry.tag}' failed: {e.message}")

    async def _to_entries(self, rows: list[dict[str, Any]]) -> list[PermissionEntry]:
        identities = await self.store.get_identities(sorted({r["user_id"] for r in rows}))
        return [
            PermissionEntry(
                user=UserIdentity(**identities.get(r["user_id"], {"id": r["user_id"]})),
                role=r["role"],
            )
            for r in rows
        ]
