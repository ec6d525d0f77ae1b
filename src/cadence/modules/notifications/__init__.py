"""Cadence Notifications Module - Permission change notices."""

from cadence.modules.notifications.router import router
from cadence.modules.notifications.service import NotificationService, render_permission_change

__all__ = ["router", "NotificationService", "render_permission_change"]
