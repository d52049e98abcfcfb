from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field


class NotificationKind(str, Enum):
    APPOINTMENT_UPDATE = "appointment_update"
    EMERGENCY = "emergency"


class Notification(BaseModel):
    """Notification record as stored in the notifications collection"""
    id: str
    recipient_id: str = Field(..., min_length=1)
    kind: NotificationKind
    message: str
    created_at: datetime
    read: bool = False

    def to_document(self) -> Dict[str, Any]:
        data = self.model_dump(exclude={"id"})
        data["kind"] = self.kind.value
        return data
