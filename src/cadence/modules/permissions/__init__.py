"""Cadence Permissions Module - Per-tag roles with audit trail."""

from cadence.modules.permissions.router import router
from cadence.modules.permissions.service import PermissionsService

__all__ = ["router", "PermissionsService"]
