"""
Cadence Audit - Service.

Append-only permission audit trail.
"""

import logging
from typing import Any

from cadence.core import get_store
from cadence.core.store import GovernanceStore
from cadence.modules.audit.schemas import AuditLogCreate, AuditLogEntry, AuditLogRecord
from cadence.schemas import UserIdentity

logger = logging.getLogger(__name__)


def to_audit_entry(data: dict[str, Any]) -> AuditLogEntry:
    """Convert a store record to AuditLogEntry."""
    return AuditLogEntry(
        id=str(data["id"]),
        tag=data["tag"],
        user_id=data["user_id"],
        actor_id=data["actor_id"],
        action=data["action"],
        old_role=data.get("old_role"),
        new_role=data.get("new_role"),
        description=data.get("description"),
        timestamp=data["timestamp"],
    )


class AuditService:
    """Service for audit operations."""

    def __init__(self, store: GovernanceStore | None = None):
        self.store = store or get_store()

    async def record_audit_log(self, entry: AuditLogCreate) -> AuditLogEntry:
        """Append an entry. Existing entries are never touched."""
        created = await self.store.append_audit_log(entry.model_dump())
        logger.info(f"[AUDIT] {entry.action} {entry.tag} {entry.user_id} by {entry.actor_id}")
        return to_audit_entry(created)

    async def get_audit_logs(self, tag: str | None = None, limit: int | None = None) -> list[AuditLogRecord]:
        """Entries most recent first, with user and actor identities."""
        rows = await self.store.list_audit_logs(tag=tag, limit=limit)
        user_ids = {r["user_id"] for r in rows} | {r["actor_id"] for r in rows}
        identities = await self.store.get_identities(sorted(user_ids))

        return [
            AuditLogRecord(
                **to_audit_entry(row).model_dump(),
                user=self._identity(identities, row["user_id"]),
                actor=self._identity(identities, row["actor_id"]),
            )
            for row in rows
        ]

    @staticmethod
    def _identity(identities: dict[str, dict[str, Any]], user_id: str) -> UserIdentity:
        return UserIdentity(**identities.get(user_id, {"id": user_id}))
