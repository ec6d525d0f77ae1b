"""
Cadence Core - In-memory governance store.

Default backend for development and tests. All state lives in process
memory; when a snapshot path is configured the whole state is written to a
JSON file after every write and loaded back on start.
"""

import json
import logging
import threading
from copy import deepcopy
from pathlib import Path
from typing import Any
from uuid import uuid4

from cadence.core.store import GovernanceStore, PermissionMode, utc_now_iso
from cadence.exceptions import (
    ConflictException,
    DuplicateAssignmentException,
    NotFoundException,
    ValidationException,
)

logger = logging.getLogger(__name__)

# Keep the snapshot bounded; the live log is never trimmed
AUDIT_SNAPSHOT_LIMIT = 5000


class InMemoryStore(GovernanceStore):
    """
    Process-local store.

    Every write holds one lock for its whole check-mutate-append sequence.
    """

    def __init__(self, snapshot_path: str | Path | None = None):
        self._lock = threading.Lock()
        self._snapshot_path = Path(snapshot_path) if snapshot_path else None

        self._users: dict[str, dict[str, Any]] = {}
        self._edges: list[dict[str, Any]] = []
        # Structure: {tag: {user_id: role}}
        self._permissions: dict[str, dict[str, str]] = {}
        self._audit_log: list[dict[str, Any]] = []
        self._templates: dict[str, dict[str, Any]] = {}
        self._versions: list[dict[str, Any]] = []
        self._notifications: list[dict[str, Any]] = []

        self._load()

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    def _load(self) -> None:
        if not self._snapshot_path or not self._snapshot_path.exists():
            return

        with open(self._snapshot_path, encoding="utf-8") as f:
            data = json.load(f)

        self._users = data.get("users", {})
        self._edges = data.get("edges", [])
        self._permissions = data.get("permissions", {})
        self._audit_log = data.get("audit_log", [])
        self._templates = data.get("templates", {})
        self._versions = data.get("versions", [])
        self._notifications = data.get("notifications", [])
        logger.info(f"Loaded governance snapshot from {self._snapshot_path}")

    def _save(self) -> None:
        """Persist state to disk. Must hold lock."""
        if not self._snapshot_path:
            return

        self._snapshot_path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "users": self._users,
            "edges": self._edges,
            "permissions": self._permissions,
            "audit_log": self._audit_log[-AUDIT_SNAPSHOT_LIMIT:],
            "templates": self._templates,
            "versions": self._versions,
            "notifications": self._notifications,
        }
        with open(self._snapshot_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str, ensure_ascii=False)

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    async def get_identities(self, user_ids: list[str]) -> dict[str, dict[str, Any]]:
        with self._lock:
            return {uid: dict(self._users[uid]) for uid in user_ids if uid in self._users}

    async def upsert_user(self, identity: dict[str, Any]) -> dict[str, Any]:
        user_id = str(identity.get("id") or "").strip()
        if not user_id:
            raise ValidationException("User id is required")

        record = {"id": user_id, "name": identity.get("name"), "email": identity.get("email")}
        with self._lock:
            self._users[user_id] = record
            self._save()
        return dict(record)

    # -------------------------------------------------------------------------
    # Hierarchy
    # -------------------------------------------------------------------------

    async def list_edges(self) -> list[dict[str, Any]]:
        with self._lock:
            return [dict(e) for e in self._edges]

    async def insert_edge(self, parent_tag: str, child_tag: str) -> dict[str, Any]:
        with self._lock:
            for edge in self._edges:
                if edge["parent_tag"] == parent_tag and edge["child_tag"] == child_tag:
                    raise ConflictException(
                        f"Relation '{parent_tag}' -> '{child_tag}' already exists",
                        details={"parent_tag": parent_tag, "child_tag": child_tag},
                    )
            edge = {"parent_tag": parent_tag, "child_tag": child_tag, "created_at": utc_now_iso()}
            self._edges.append(edge)
            self._save()
            return dict(edge)

    async def delete_edge(self, parent_tag: str, child_tag: str) -> None:
        with self._lock:
            for i, edge in enumerate(self._edges):
                if edge["parent_tag"] == parent_tag and edge["child_tag"] == child_tag:
                    del self._edges[i]
                    self._save()
                    return
        raise NotFoundException("tag relation", f"{parent_tag} -> {child_tag}")

    # -------------------------------------------------------------------------
    # Permissions + audit
    # -------------------------------------------------------------------------

    async def get_role(self, tag: str, user_id: str) -> str | None:
        with self._lock:
            return self._permissions.get(tag, {}).get(user_id)

    async def list_permissions(self, tag: str | None = None) -> list[dict[str, Any]]:
        with self._lock:
            tags = [tag] if tag is not None else list(self._permissions)
            return [
                {"tag": t, "user_id": uid, "role": role}
                for t in tags
                for uid, role in self._permissions.get(t, {}).items()
            ]

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
        with self._lock:
            tag_roles = self._permissions.get(tag, {})
            old_role = tag_roles.get(user_id)

            if mode != "remove" and user_id not in self._users:
                raise NotFoundException("user", user_id)

            if mode == "add":
                if old_role is not None:
                    raise DuplicateAssignmentException(tag, user_id, old_role)
                action = "add"
            elif mode in ("update", "remove"):
                if old_role is None:
                    raise NotFoundException("permission", f"{tag}:{user_id}")
                action = mode
            elif mode == "upsert":
                action = "add" if old_role is None else "update"
            else:
                raise ValidationException(f"Unknown permission mode: {mode}")

            if action == "remove":
                new_role = None
                del tag_roles[user_id]
                if not tag_roles:
                    self._permissions.pop(tag, None)
            else:
                new_role = role
                self._permissions.setdefault(tag, {})[user_id] = role

            entry = {
                "id": str(uuid4()),
                "tag": tag,
                "user_id": user_id,
                "actor_id": actor_id,
                "action": action,
                "old_role": old_role,
                "new_role": new_role,
                "description": description,
                "timestamp": utc_now_iso(),
            }
            self._audit_log.append(entry)
            self._save()
            return dict(entry)

    async def append_audit_log(self, entry: dict[str, Any]) -> dict[str, Any]:
        record = {
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
        with self._lock:
            self._audit_log.append(record)
            self._save()
        return dict(record)

    async def list_audit_logs(self, tag: str | None = None, limit: int | None = None) -> list[dict[str, Any]]:
        with self._lock:
            entries = [dict(e) for e in reversed(self._audit_log) if tag is None or e["tag"] == tag]
        # Stable sort keeps newest-appended first among equal timestamps
        entries.sort(key=lambda e: e["timestamp"], reverse=True)
        return entries[:limit] if limit is not None else entries

    # -------------------------------------------------------------------------
    # Templates
    # -------------------------------------------------------------------------

    async def insert_template(self, data: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            self._templates[data["id"]] = deepcopy(data)
            self._save()
        return deepcopy(data)

    async def get_template(self, template_id: str) -> dict[str, Any] | None:
        with self._lock:
            template = self._templates.get(template_id)
            return deepcopy(template) if template else None

    async def list_templates(self) -> list[dict[str, Any]]:
        with self._lock:
            templates = [deepcopy(t) for t in self._templates.values()]
        templates.sort(key=lambda t: t["updated_at"], reverse=True)
        return templates

    async def delete_template(self, template_id: str) -> bool:
        with self._lock:
            if template_id not in self._templates:
                return False
            del self._templates[template_id]
            self._save()
            return True

    # -------------------------------------------------------------------------
    # Versions
    # -------------------------------------------------------------------------

    async def insert_version(self, data: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            for existing in self._versions:
                if existing["tag"] == data["tag"] and existing["version"] == data["version"]:
                    raise ConflictException(
                        f"Version {data['version']} of tag '{data['tag']}' already exists",
                        details={"tag": data["tag"], "version": data["version"]},
                    )
            self._versions.append(deepcopy(data))
            self._save()
        return deepcopy(data)

    async def list_versions(self, tag: str) -> list[dict[str, Any]]:
        with self._lock:
            versions = [deepcopy(v) for v in self._versions if v["tag"] == tag]
        versions.sort(key=lambda v: v["version"], reverse=True)
        return versions

    async def delete_version(self, tag: str, version_id: str) -> bool:
        with self._lock:
            for i, version in enumerate(self._versions):
                if version["id"] == version_id and version["tag"] == tag:
                    del self._versions[i]
                    self._save()
                    return True
        return False

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    async def insert_notification(self, data: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            self._notifications.append(deepcopy(data))
            self._save()
        return deepcopy(data)

    async def list_notifications(self, user_id: str) -> list[dict[str, Any]]:
        with self._lock:
            items = [deepcopy(n) for n in reversed(self._notifications) if n["user_id"] == user_id]
        items.sort(key=lambda n: n["timestamp"], reverse=True)
        return items

    async def mark_notification_read(self, notification_id: str, user_id: str) -> bool:
        with self._lock:
            for n in self._notifications:
                if n["id"] == notification_id and n["user_id"] == user_id:
                    n["read"] = True
                    self._save()
                    return True
        return False

    async def mark_all_notifications_read(self, user_id: str) -> int:
        count = 0
        with self._lock:
            for n in self._notifications:
                if n["user_id"] == user_id and not n["read"]:
                    n["read"] = True
                    count += 1
            if count:
                self._save()
        return count
