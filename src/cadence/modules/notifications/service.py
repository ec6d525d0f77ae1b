"""
Cadence Notifications - Service.

Turns permission changes into notices for the affected user.
"""

import logging
from typing import Any
from uuid import uuid4

from cadence.core import get_store
from cadence.core.store import GovernanceStore, utc_now_iso
from cadence.exceptions import NotFoundException
from cadence.modules.notifications.schemas import Notification

logger = logging.getLogger(__name__)

ACTION_TEXT = {
    "add": "添加为",
    "update": "更新为",
    "remove": "移除",
}

ROLE_TEXT = {
    "admin": "管理员",
    "editor": "编辑者",
    "viewer": "查看者",
}


def render_permission_change(target_name: str, role: str, action: str, actor_name: str) -> str:
    """Human-readable line, e.g. "Alice 将 Bob 添加为管理员"."""
    return f"{actor_name} 将 {target_name} {ACTION_TEXT[action]}{ROLE_TEXT[role]}"


class NotificationService:
    """Creates and reads per-user notifications."""

    def __init__(self, store: GovernanceStore | None = None):
        self.store = store or get_store()

    async def notify_permission_change(
        self,
        *,
        tag: str,
        target_id: str,
        target_name: str,
        role: str,
        action: str,
        actor_name: str,
    ) -> Notification:
        data = {
            "id": str(uuid4()),
            "user_id": target_id,
            "type": "tag_change",
            "tag": tag,
            "change": {
                "type": "permission",
                "description": render_permission_change(target_name, role, action, actor_name),
                "author": {"name": actor_name},
            },
            "timestamp": utc_now_iso(),
            "read": False,
        }
        created = await self.store.insert_notification(data)
        return self._to_notification(created)

    async def list_notifications(self, user_id: str) -> list[Notification]:
        rows = await self.store.list_notifications(user_id)
        return [self._to_notification(r) for r in rows]

    async def mark_as_read(self, notification_id: str, user_id: str) -> None:
        if not await self.store.mark_notification_read(notification_id, user_id):
            raise NotFoundException("notification", notification_id)

    async def mark_all_as_read(self, user_id: str) -> int:
        return await self.store.mark_all_notifications_read(user_id)

    def _to_notification(self, data: dict[str, Any]) -> Notification:
        return Notification.model_validate(data)
