"""
Cadence Core - Supabase governance store.

Schema expectation (see sql/tag_governance.sql):
- users(id text pk, name, email)
- tag_hierarchy(parent_tag, child_tag, created_at) unique(parent_tag, child_tag)
- tag_permissions(tag, user_id -> users.id, role) unique(tag, user_id)
- tag_permission_audit(id, tag, user_id, actor_id, action, old_role, new_role, description, timestamp)
- permission_templates(id, name, description, roles jsonb, created_by, created_at, updated_at)
- tag_versions(id, tag, version, changes jsonb, timestamp, author jsonb) unique(tag, version)
- notifications(id, user_id, type, tag, change jsonb, timestamp, read)

Permission writes call the apply_tag_permission_change Postgres function,
which mutates tag_permissions and inserts the audit row in one transaction.
"""

import logging
from typing import Any
from uuid import uuid4

from postgrest.exceptions import APIError
from supabase import Client, create_client

from cadence.config import Settings, get_settings
from cadence.core.store import GovernanceStore, PermissionMode, utc_now_iso
from cadence.exceptions import (
    ConflictException,
    DuplicateAssignmentException,
    NotFoundException,
    PersistenceException,
)

logger = logging.getLogger(__name__)

# SQLSTATE codes raised by the tables and by apply_tag_permission_change
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NO_DATA_FOUND = "P0002"


class SupabaseStore(GovernanceStore):
    """Governance store backed by Supabase (PostgREST)."""

    def __init__(self, client: Client | None = None, settings: Settings | None = None):
        if client is None:
            supabase = (settings or get_settings()).supabase
            client = create_client(supabase_url=supabase.url, supabase_key=supabase.service_role_key)
            logger.info(f"Governance store using Supabase at {supabase.url}")
        self._client = client

    def _execute(self, operation: str, query) -> Any:
        try:
            return query.execute()
        except APIError as e:
            logger.error(f"Supabase {operation} failed: code={e.code} message={e.message}")
            raise PersistenceException(operation) from e

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    async def get_identities(self, user_ids: list[str]) -> dict[str, dict[str, Any]]:
        if not user_ids:
            return {}
        response = self._execute(
            "get_identities",
            self._client.table("users").select("id, name, email").in_("id", list(dict.fromkeys(user_ids))),
        )
        return {row["id"]: row for row in response.data or []}

    async def upsert_user(self, identity: dict[str, Any]) -> dict[str, Any]:
        payload = {"id": identity["id"], "name": identity.get("name"), "email": identity.get("email")}
        response = self._execute(
            "upsert_user",
            self._client.table("users").upsert(payload, on_conflict="id"),
        )
        return (response.data or [payload])[0]

    # -------------------------------------------------------------------------
    # Hierarchy
    # -------------------------------------------------------------------------

    async def list_edges(self) -> list[dict[str, Any]]:
        response = self._execute(
            "list_edges",
            self._client.table("tag_hierarchy").select("parent_tag, child_tag, created_at").order("created_at"),
        )
        return response.data or []

    async def insert_edge(self, parent_tag: str, child_tag: str) -> dict[str, Any]:
        payload = {"parent_tag": parent_tag, "child_tag": child_tag, "created_at": utc_now_iso()}
        try:
            response = self._client.table("tag_hierarchy").insert(payload).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise ConflictException(
                    f"Relation '{parent_tag}' -> '{child_tag}' already exists",
                    details={"parent_tag": parent_tag, "child_tag": child_tag},
                ) from e
            logger.error(f"Supabase insert_edge failed: code={e.code} message={e.message}")
            raise PersistenceException("insert_edge") from e
        return response.data[0]

    async def delete_edge(self, parent_tag: str, child_tag: str) -> None:
        response = self._execute(
            "delete_edge",
            self._client.table("tag_hierarchy")
            .delete()
            .eq("parent_tag", parent_tag)
            .eq("child_tag", child_tag),
        )
        if not response.data:
            raise NotFoundException("tag relation", f"{parent_tag} -> {child_tag}")

    # -------------------------------------------------------------------------
    # Permissions + audit
    # -------------------------------------------------------------------------

    async def get_role(self, tag: str, user_id: str) -> str | None:
        response = self._execute(
            "get_role",
            self._client.table("tag_permissions").select("role").eq("tag", tag).eq("user_id", user_id),
        )
        rows = response.data or []
        return rows[0]["role"] if rows else None

    async def list_permissions(self, tag: str | None = None) -> list[dict[str, Any]]:
        query = self._client.table("tag_permissions").select("tag, user_id, role")
        if tag is not None:
            query = query.eq("tag", tag)
        response = self._execute("list_permissions", query.order("created_at"))
        return response.data or []

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
        params = {
            "p_tag": tag,
            "p_user_id": user_id,
            "p_mode": mode,
            "p_role": role,
            "p_actor_id": actor_id,
            "p_description": description,
        }
        try:
            response = self._client.rpc("apply_tag_permission_change", params).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise DuplicateAssignmentException(tag, user_id) from e
            if e.code == NO_DATA_FOUND:
                raise NotFoundException("permission", f"{tag}:{user_id}") from e
            if e.code == FOREIGN_KEY_VIOLATION:
                raise NotFoundException("user", user_id) from e
            logger.error(f"Supabase apply_permission_change failed: code={e.code} message={e.message}")
            raise PersistenceException("apply_permission_change") from e

        data = response.data
        return data[0] if isinstance(data, list) else data

    async def append_audit_log(self, entry: dict[str, Any]) -> dict[str, Any]:
        payload = {
            "id": entry.get("id") or str(uuid4()),
            "tag": entry["tag"],
            "user_id": entry["user_id"],
            "actor_id": entry["actor_id"],
            "action": entry["action"],
            "old_role": entry.get("old_role"),
            "new_role": entry.get("new_role"),
            "description": entry.get("description"),
            "timestamp": entry.get("timestamp") or utc_now_iso(),
        }
        response = self._execute("append_audit_log", self._client.table("tag_permission_audit").insert(payload))
        return response.data[0]

    async def list_audit_logs(self, tag: str | None = None, limit: int | None = None) -> list[dict[str, Any]]:
        query = self._client.table("tag_permission_audit").select("*")
        if tag is not None:
            query = query.eq("tag", tag)
        query = query.order("timestamp", desc=True)
        if limit is not None:
            query = query.limit(limit)
        response = self._execute("list_audit_logs", query)
        return response.data or []

    # -------------------------------------------------------------------------
    # Templates
    # -------------------------------------------------------------------------

    async def insert_template(self, data: dict[str, Any]) -> dict[str, Any]:
        response = self._execute("insert_template", self._client.table("permission_templates").insert(data))
        return response.data[0]

    async def get_template(self, template_id: str) -> dict[str, Any] | None:
        response = self._execute(
            "get_template",
            self._client.table("permission_templates").select("*").eq("id", template_id),
        )
        rows = response.data or []
        return rows[0] if rows else None

    async def list_templates(self) -> list[dict[str, Any]]:
        response = self._execute(
            "list_templates",
            self._client.table("permission_templates").select("*").order("updated_at", desc=True),
        )
        return response.data or []

    async def delete_template(self, template_id: str) -> bool:
        response = self._execute(
            "delete_template",
            self._client.table("permission_templates").delete().eq("id", template_id),
        )
        return bool(response.data)

    # -------------------------------------------------------------------------
    # Versions
    # -------------------------------------------------------------------------

    async def insert_version(self, data: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self._client.table("tag_versions").insert(data).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise ConflictException(
                    f"Version {data['version']} of tag '{data['tag']}' already exists",
                    details={"tag": data["tag"], "version": data["version"]},
                ) from e
            logger.error(f"Supabase insert_version failed: code={e.code} message={e.message}")
            raise PersistenceException("insert_version") from e
        return response.data[0]

    async def list_versions(self, tag: str) -> list[dict[str, Any]]:
        response = self._execute(
            "list_versions",
            self._client.table("tag_versions").select("*").eq("tag", tag).order("version", desc=True),
        )
        return response.data or []

    async def delete_version(self, tag: str, version_id: str) -> bool:
        response = self._execute(
            "delete_version",
            self._client.table("tag_versions").delete().eq("id", version_id).eq("tag", tag),
        )
        return bool(response.data)

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    async def insert_notification(self, data: dict[str, Any]) -> dict[str, Any]:
        response = self._execute("insert_notification", self._client.table("notifications").insert(data))
        return response.data[0]

    async def list_notifications(self, user_id: str) -> list[dict[str, Any]]:
        response = self._execute(
            "list_notifications",
            self._client.table("notifications").select("*").eq("user_id", user_id).order("timestamp", desc=True),
        )
        return response.data or []

    async def mark_notification_read(self, notification_id: str, user_id: str) -> bool:
        response = self._execute(
            "mark_notification_read",
            self._client.table("notifications")
            .update({"read": True})
            .eq("id", notification_id)
            .eq("user_id", user_id),
        )
        return bool(response.data)

    async def mark_all_notifications_read(self, user_id: str) -> int:
        response = self._execute(
            "mark_all_notifications_read",
            self._client.table("notifications")
            .update({"read": True})
            .eq("user_id", user_id)
            .eq("read", False),
        )
        return len(response.data or [])
