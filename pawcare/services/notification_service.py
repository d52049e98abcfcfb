import logging
from datetime import datetime, timezone
from typing import List, Optional

from ..errors import NotPermitted
from ..models import Notification, NotificationKind, parse_document
from .document_store import NOTIFICATIONS, DocumentStore

logger = logging.getLogger(__name__)

APPROVED_MESSAGE = "Your appointment has been approved!"
RESCHEDULED_MESSAGE = "Your appointment has been rescheduled."
EMERGENCY_TRANSFER_MESSAGE = "You have received a transferred emergency appointment."


class NotificationService:
    """Records in-app notifications; delivery is someone else's job"""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def emit(
        self,
        recipient_id: str,
        kind: NotificationKind,
        message: str,
    ) -> Optional[str]:
        """
        Record a notification for a recipient

        Never raises: the transition that triggered it has already been
        committed.

        Returns:
            Notification ID, or None if the record could not be created
        """
        record = {
            "recipient_id": recipient_id,
            "kind": kind.value,
            "message": message,
            "created_at": datetime.now(timezone.utc),
            "read": False,
        }
        try:
            notification_id = await self.store.create(NOTIFICATIONS, record)
        except Exception:
            logger.exception("Failed to record %s notification for %s", kind.value, recipient_id)
            return None
        logger.info("Notification %s (%s) recorded for %s", notification_id, kind.value, recipient_id)
        return notification_id

    async def list_for_recipient(self, recipient_id: str, unread_only: bool = False) -> List[Notification]:
        """Recipient's notifications, newest first"""
        filters = {"recipient_id": recipient_id}
        if unread_only:
            filters["read"] = False
        documents = await self.store.query(NOTIFICATIONS, **filters)
        notifications = [parse_document(Notification, NOTIFICATIONS, d) for d in documents]
        return sorted(notifications, key=lambda n: n.created_at, reverse=True)

    async def mark_read(self, notification_id: str, recipient_id: str) -> Notification:
        """
        Acknowledge a notification

        Raises:
            NotFound: unknown notification
            NotPermitted: notification belongs to someone else
        """
        document = await self.store.get(NOTIFICATIONS, notification_id)
        notification = parse_document(Notification, NOTIFICATIONS, document)
        if notification.recipient_id != recipient_id:
            raise NotPermitted(f"Notification {notification_id} belongs to another user")
        if not notification.read:
            await self.store.update(
                NOTIFICATIONS,
                notification_id,
                {"read": True},
                expected={"recipient_id": recipient_id},
            )
        return notification.model_copy(update={"read": True})
