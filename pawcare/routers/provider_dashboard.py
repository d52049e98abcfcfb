from typing import Dict, List

from fastapi import APIRouter, Depends

from ..auth.middleware import require_provider
from ..dependencies import (
    get_appointment_service,
    get_availability_service,
    get_emergency_service,
)
from ..models import ScheduleUpdate
from ..services.appointment_service import AppointmentService
from ..services.availability_service import AvailabilityService
from ..services.emergency_service import EmergencyService


router = APIRouter(prefix="/provider", tags=["provider-dashboard"])


@router.get("/api/appointments")
async def get_appointments(
    provider_id: str = Depends(require_provider),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    """Provider's appointments, emergencies first"""
    listing = await appointments.list_for_provider(provider_id)
    return {"appointments": listing}


@router.post("/api/appointments/{appointment_id}/approve")
async def approve_appointment(
    appointment_id: str,
    provider_id: str = Depends(require_provider),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    """Approve a pending or emergency appointment"""
    result = await appointments.approve(appointment_id, provider_id=provider_id)
    return {"success": True, "message": "Appointment approved", "result": result}


@router.post("/api/appointments/{appointment_id}/reschedule")
async def reschedule_appointment(
    appointment_id: str,
    provider_id: str = Depends(require_provider),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    """Ask the client to pick another slot"""
    result = await appointments.reschedule_by_provider(appointment_id, provider_id=provider_id)
    return {"success": True, "message": "Appointment rescheduled", "result": result}


@router.post("/api/appointments/{appointment_id}/seen")
async def mark_appointment_seen(
    appointment_id: str,
    provider_id: str = Depends(require_provider),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    result = await appointments.mark_seen(appointment_id, provider_id=provider_id)
    return {"success": True, "message": "Appointment marked as seen", "result": result}


@router.post("/api/appointments/{appointment_id}/transfer")
async def transfer_emergency(
    appointment_id: str,
    provider_id: str = Depends(require_provider),
    emergency: EmergencyService = Depends(get_emergency_service),
):
    """Hand an emergency over to another provider with the same specialization"""
    result = await emergency.transfer(appointment_id, provider_id=provider_id)
    return {"success": True, "message": "Emergency transferred", "result": result}


@router.put("/api/specializations/{specialization}/schedule")
async def replace_schedule(
    specialization: str,
    body: ScheduleUpdate,
    provider_id: str = Depends(require_provider),
    availability: AvailabilityService = Depends(get_availability_service),
):
    """Replace the whole schedule of one specialization"""
    provider = await availability.replace_schedule(provider_id, specialization, body.schedule)
    return {"success": True, "specializations": provider.specializations}


@router.put("/api/specializations")
async def replace_specializations(
    body: List[Dict],
    provider_id: str = Depends(require_provider),
    availability: AvailabilityService = Depends(get_availability_service),
):
    """Replace every specialization and schedule at once"""
    provider = await availability.replace_specializations(provider_id, body)
    return {"success": True, "specializations": provider.specializations}
