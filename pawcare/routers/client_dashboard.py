from typing import Optional

from fastapi import APIRouter, Depends

from ..auth.middleware import require_client
from ..dependencies import get_appointment_service, get_availability_service
from ..models import BookingRequest, ClientRescheduleRequest, EmergencyBookingRequest
from ..services.appointment_service import AppointmentService
from ..services.availability_service import AvailabilityService
from ..services.booking_validator import emergency_window


router = APIRouter(prefix="/client", tags=["client-dashboard"])


@router.get("/api/providers")
async def get_directory(
    search: Optional[str] = None,
    availability: AvailabilityService = Depends(get_availability_service),
):
    """Provider directory, one row per specialization"""
    return {"providers": await availability.search_directory(search)}


@router.get("/api/providers/{provider_id}/specializations/{specialization}/days")
async def get_days(
    provider_id: str,
    specialization: str,
    availability: AvailabilityService = Depends(get_availability_service),
):
    return {"days": await availability.list_days(provider_id, specialization)}


@router.get("/api/providers/{provider_id}/specializations/{specialization}/slots")
async def get_slots(
    provider_id: str,
    specialization: str,
    day: str,
    availability: AvailabilityService = Depends(get_availability_service),
):
    return {"day": day, "slots": await availability.list_slots(provider_id, specialization, day)}


@router.post("/api/appointments", status_code=201)
async def book_appointment(
    body: BookingRequest,
    client_id: str = Depends(require_client),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    """Request an appointment in a published slot"""
    appointment = await appointments.book(client_id, body)
    return {
        "success": True,
        "appointment_id": appointment.id,
        "message": "Appointment requested successfully!",
        "appointment": appointment,
    }


@router.get("/api/emergency-window")
async def get_emergency_window():
    """Days and times available for emergency visits"""
    return emergency_window()


@router.post("/api/emergency-appointments", status_code=201)
async def book_emergency(
    body: EmergencyBookingRequest,
    client_id: str = Depends(require_client),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    appointment = await appointments.book_emergency(client_id, body)
    return {
        "success": True,
        "appointment_id": appointment.id,
        "message": "Emergency visit requested",
        "appointment": appointment,
    }


@router.get("/api/appointments")
async def get_appointments(
    client_id: str = Depends(require_client),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    return {"appointments": await appointments.list_for_client(client_id)}


@router.get("/api/appointments/{appointment_id}/reschedule-options")
async def get_reschedule_options(
    appointment_id: str,
    day: Optional[str] = None,
    client_id: str = Depends(require_client),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    """Days (and slots for `day`) the client can move a rescheduled appointment to"""
    return await appointments.reschedule_options(appointment_id, client_id=client_id, day=day)


@router.post("/api/appointments/{appointment_id}/reschedule", status_code=201)
async def reschedule_appointment(
    appointment_id: str,
    body: ClientRescheduleRequest,
    client_id: str = Depends(require_client),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    result = await appointments.reschedule_by_client(appointment_id, body, client_id=client_id)
    return {"success": True, "appointment_id": result.successor.id, "result": result}


@router.get("/api/reschedules/unreconciled")
async def get_unreconciled_reschedules(
    client_id: str = Depends(require_client),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    return {"appointments": await appointments.find_unreconciled_reschedules(client_id)}


@router.post("/api/reschedules/{successor_id}/reconcile")
async def reconcile_reschedule(
    successor_id: str,
    client_id: str = Depends(require_client),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    original = await appointments.reconcile_reschedule(successor_id, client_id=client_id)
    return {"success": True, "original": original}
