"""Cadence Notifications - Router."""

from fastapi import APIRouter, Depends, status

from cadence.auth import Actor, get_current_user
from cadence.deps import require_notifications
from cadence.modules.notifications.schemas import MarkAllReadResponse, Notification
from cadence.modules.notifications.service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"], dependencies=[require_notifications])


def get_service() -> NotificationService:
    return NotificationService()


@router.get("", response_model=list[Notification])
async def list_notifications(
    user: Actor = Depends(get_current_user),
    service: NotificationService = Depends(get_service),
) -> list[Notification]:
    """Notifications for the current user, newest first."""
    return await service.list_notifications(user.id)


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_as_read(
    user: Actor = Depends(get_current_user),
    service: NotificationService = Depends(get_service),
) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=await service.mark_all_as_read(user.id))


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_as_read(
    notification_id: str,
    user: Actor = Depends(get_current_user),
    service: NotificationService = Depends(get_service),
):
    await service.mark_as_read(notification_id, user.id)
    return None
