"""Cadence Audit Module - Immutable permission audit trail."""

from cadence.modules.audit.router import router
from cadence.modules.audit.service import AuditService

__all__ = ["router", "AuditService"]
