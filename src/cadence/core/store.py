"""
Cadence Core - Governance store contract.

Every backend that persists tag governance data implements GovernanceStore.
Records cross this boundary as plain dicts (the shape the database rows
have); services convert them into response models.

Permission writes go through apply_permission_change only. Implementations
must check the precondition, mutate the permission and append the audit
entry as one atomic unit, so an audit entry never exists without its
mutation and vice versa.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Literal

PermissionMode = Literal["add", "update", "remove", "upsert"]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


class GovernanceStore(ABC):
    """Abstract persistence collaborator for tag governance."""

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_identities(self, user_ids: list[str]) -> dict[str, dict[str, Any]]:
        """Return {user_id: {id, name, email}} for the ids that exist."""
        ...

    @abstractmethod
    async def upsert_user(self, identity: dict[str, Any]) -> dict[str, Any]:
        ...

    # -------------------------------------------------------------------------
    # Hierarchy
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_edges(self) -> list[dict[str, Any]]:
        """All edges in insertion order."""
        ...

    @abstractmethod
    async def insert_edge(self, parent_tag: str, child_tag: str) -> dict[str, Any]:
        """Insert an edge. Raises ConflictException if it already exists."""
        ...

    @abstractmethod
    async def delete_edge(self, parent_tag: str, child_tag: str) -> None:
        """Delete an edge. Raises NotFoundException if absent."""
        ...

    # -------------------------------------------------------------------------
    # Permissions + audit
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_role(self, tag: str, user_id: str) -> str | None:
        ...

    @abstractmethod
    async def list_permissions(self, tag: str | None = None) -> list[dict[str, Any]]:
        """Permission rows ({tag, user_id, role}) in assignment order."""
        ...

    @abstractmethod
    async def apply_permission_change(
        self,
        *,
        tag: str,
        user_id: str,
        mode: PermissionMode,
        role: str | None,
        actor_id: str,
        description: str | None = None,
    ) -> dict[str, Any]:
        """
        Mutate one permission and append its audit entry atomically.

        Modes:
            add: DuplicateAssignmentException if the pair already has a role
            update: NotFoundException if the pair has no role
            remove: NotFoundException if the pair has no role
            upsert: add or update, whichever applies

        add/update/upsert raise NotFoundException("user", ...) for unknown users.

        Returns:
            The audit entry that was written
        """
        ...

    @abstractmethod
    async def append_audit_log(self, entry: dict[str, Any]) -> dict[str, Any]:
        """Append an audit entry. Audit entries are never updated or deleted."""
        ...

    @abstractmethod
    async def list_audit_logs(self, tag: str | None = None, limit: int | None = None) -> list[dict[str, Any]]:
        """Audit entries, most recent first."""
        ...

    # -------------------------------------------------------------------------
    # Templates
    # -------------------------------------------------------------------------

    @abstractmethod
    async def insert_template(self, data: dict[str, Any]) -> dict[str, Any]:
        ...

    @abstractmethod
    async def get_template(self, template_id: str) -> dict[str, Any] | None:
        ...

    @abstractmethod
    async def list_templates(self) -> list[dict[str, Any]]:
        """Templates, most recently updated first."""
        ...

    @abstractmethod
    async def delete_template(self, template_id: str) -> bool:
        ...

    # -------------------------------------------------------------------------
    # Versions
    # -------------------------------------------------------------------------

    @abstractmethod
    async def insert_version(self, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a sealed version. Raises ConflictException on a taken (tag, version)."""
        ...

    @abstractmethod
    async def list_versions(self, tag: str) -> list[dict[str, Any]]:
        """Versions of a tag, highest number first."""
        ...

    @abstractmethod
    async def delete_version(self, tag: str, version_id: str) -> bool:
        """Delete one version of a tag. False when no such version."""
        ...

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    @abstractmethod
    async def insert_notification(self, data: dict[str, Any]) -> dict[str, Any]:
        ...

    @abstractmethod
    async def list_notifications(self, user_id: str) -> list[dict[str, Any]]:
        """Notifications for a user, newest first."""
        ...

    @abstractmethod
    async def mark_notification_read(self, notification_id: str, user_id: str) -> bool:
        ...

    @abstractmethod
    async def mark_all_notifications_read(self, user_id: str) -> int:
        ...
