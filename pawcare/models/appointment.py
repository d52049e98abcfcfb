from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class AppointmentStatus(str, Enum):
    """Appointment status enum"""
    PENDING = "pending"
    APPROVED = "approved"
    RESCHEDULED = "rescheduled"                   # provider asked the client to pick again
    RESCHEDULED_BY_USER = "rescheduled_by_user"   # client picked again; successor holds the booking
    EMERGENCY_PENDING = "emergency_pending"
    SEEN = "seen"


class Appointment(BaseModel):
    """Appointment model as stored in the appointments collection"""
    id: str
    client_id: str = Field(..., min_length=1)
    provider_id: str = Field(..., min_length=1)
    pet_name: str = Field(..., min_length=1)
    # Free-text problem description, also the specialization routing key
    disease: str = Field(..., min_length=1)
    requested_day: str = Field(..., min_length=1)
    requested_time: str = Field(..., min_length=1)
    status: AppointmentStatus
    created_at: datetime
    is_emergency: bool = False
    original_appointment_id: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        data = self.model_dump(exclude={"id"})
        data["status"] = self.status.value
        return data


class AppointmentView(Appointment):
    """Appointment with the counterpart's display name for listings"""
    client_name: Optional[str] = None
    provider_name: Optional[str] = None


class BookingRequest(BaseModel):
    """Request to book a regular appointment"""
    provider_id: str
    pet_name: str = ""
    disease: str = ""
    day: str = ""
    time: str = ""


class EmergencyBookingRequest(BookingRequest):
    """Request to book an emergency visit (day is an ISO date)"""
    pass


class ClientRescheduleRequest(BaseModel):
    """Client's new choice for an appointment the provider rescheduled"""
    day: str = ""
    time: str = ""


class RescheduleOptions(BaseModel):
    """Days (and optionally slots for one day) a client may move to"""
    appointment_id: str
    provider_id: str
    specialization: str
    days: List[str]
    day: Optional[str] = None
    slots: List[str] = Field(default_factory=list)


class EmergencyWindow(BaseModel):
    """Days and times offered for emergency bookings"""
    days: List[str]
    times: List[str]


class TransitionResult(BaseModel):
    """Outcome of a single-appointment status transition"""
    appointment: Appointment
    previous_status: AppointmentStatus
    notification_id: Optional[str] = None


class TransferResult(TransitionResult):
    """Outcome of an emergency transfer"""
    previous_provider_id: str
    new_provider_id: str


class RescheduleResult(BaseModel):
    """Outcome of a client reschedule: the closed original and its successor"""
    original: Appointment
    successor: Appointment
