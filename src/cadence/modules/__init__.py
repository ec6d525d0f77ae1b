"""Cadence Modules - Tag governance modules."""

from cadence.modules.analytics import router as analytics_router
from cadence.modules.audit import router as audit_router
from cadence.modules.hierarchy import router as hierarchy_router
from cadence.modules.notifications import router as notifications_router
from cadence.modules.permissions import router as permissions_router
from cadence.modules.templates import router as templates_router
from cadence.modules.versions import router as versions_router

__all__ = [
    "analytics_router",
    "audit_router",
    "hierarchy_router",
    "notifications_router",
    "permissions_router",
    "templates_router",
    "versions_router",
]
