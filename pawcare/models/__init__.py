"""
Data models for the application
All Pydantic models for stored records and request/response validation
"""
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import MalformedDocument

from .day_key import (
    DayKey,
    Weekday,
    parse_day_key,
    format_day_key,
    normalize_day,
)

from .user import (
    UserRole,
    UserBase,
    Client,
    Provider,
    ProviderPublic,
    Specialization,
    ScheduleUpdate,
    specialization_key,
)

from .appointment import (
    AppointmentStatus,
    Appointment,
    AppointmentView,
    BookingRequest,
    EmergencyBookingRequest,
    ClientRescheduleRequest,
    RescheduleOptions,
    EmergencyWindow,
    TransitionResult,
    TransferResult,
    RescheduleResult,
)

from .notification import (
    NotificationKind,
    Notification,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_document(model: Type[ModelT], collection: str, document: Dict[str, Any]) -> ModelT:
    """
    Validate a raw store document into a typed record

    Raises:
        MalformedDocument: if required fields are missing or invalid
    """
    try:
        return model.model_validate(document)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        )
        raise MalformedDocument(collection, document.get("id"), problems) from e


__all__ = [
    # Day keys
    "DayKey",
    "Weekday",
    "parse_day_key",
    "format_day_key",
    "normalize_day",

    # User models
    "UserRole",
    "UserBase",
    "Client",
    "Provider",
    "ProviderPublic",
    "Specialization",
    "ScheduleUpdate",
    "specialization_key",

    # Appointment models
    "AppointmentStatus",
    "Appointment",
    "AppointmentView",
    "BookingRequest",
    "EmergencyBookingRequest",
    "ClientRescheduleRequest",
    "RescheduleOptions",
    "EmergencyWindow",
    "TransitionResult",
    "TransferResult",
    "RescheduleResult",

    # Notification models
    "NotificationKind",
    "Notification",

    "parse_document",
]
