"""
Cadence Audit - Router.

READ-ONLY endpoint for the permission audit trail.
"""

from fastapi import APIRouter, Depends, Query

from cadence.auth import Actor, get_current_user
from cadence.config import get_settings
from cadence.deps import require_audit
from cadence.modules.audit.schemas import AuditLogRecord
from cadence.modules.audit.service import AuditService

router = APIRouter(prefix="/tags", tags=["Audit"], dependencies=[require_audit])


def get_service() -> AuditService:
    """Get audit service instance."""
    return AuditService()


@router.get("/audit", response_model=list[AuditLogRecord])
async def get_audit_logs(
    tag: str | None = None,
    limit: int | None = Query(default=None, ge=1),
    user: Actor = Depends(get_current_user),
    service: AuditService = Depends(get_service),
) -> list[AuditLogRecord]:
    """Permission audit entries, most recent first."""
    cap = get_settings().governance.audit_page_limit
    return await service.get_audit_logs(tag=tag, limit=min(limit or cap, cap))
