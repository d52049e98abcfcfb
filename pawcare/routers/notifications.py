from fastapi import APIRouter, Depends

from ..auth.middleware import require_auth
from ..dependencies import get_notification_service
from ..services.notification_service import NotificationService


router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/api")
async def get_notifications(
    unread_only: bool = False,
    user: dict = Depends(require_auth),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Current user's notifications, newest first"""
    items = await notifications.list_for_recipient(user["id"], unread_only=unread_only)
    return {"notifications": items, "unread": sum(1 for n in items if not n.read)}


@router.post("/api/{notification_id}/read")
async def mark_notification_read(
    notification_id: str,
    user: dict = Depends(require_auth),
    notifications: NotificationService = Depends(get_notification_service),
):
    notification = await notifications.mark_read(notification_id, user["id"])
    return {"success": True, "notification": notification}
