import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from ..config import settings
from ..errors import (
    Conflict,
    MalformedDocument,
    NotFound,
    PartialTransactionFailure,
    SlotUnavailable,
    ValidationFailed,
)
from ..models import (
    Appointment,
    AppointmentStatus,
    AppointmentView,
    BookingRequest,
    Client,
    ClientRescheduleRequest,
    EmergencyBookingRequest,
    NotificationKind,
    RescheduleOptions,
    RescheduleResult,
    TransitionResult,
    UserRole,
    normalize_day,
    parse_document,
)
from .availability_service import AvailabilityService
from .booking_validator import (
    REQUIRED_BOOKING_FIELDS,
    BookingValidator,
    require_fields,
    validate_emergency_slot,
)
from .document_store import APPOINTMENTS, USERS, CreateOp, DocumentStore, UpdateOp
from .notification_service import (
    APPROVED_MESSAGE,
    RESCHEDULED_MESSAGE,
    NotificationService,
)
from .state_machine import AppointmentAction, check_actor, next_status

logger = logging.getLogger(__name__)

# Statuses that still hold the provider's time slot
LIVE_STATUSES = {
    AppointmentStatus.PENDING,
    AppointmentStatus.APPROVED,
    AppointmentStatus.RESCHEDULED,
    AppointmentStatus.EMERGENCY_PENDING,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def sort_for_provider(appointments: Iterable[Appointment]) -> List[Appointment]:
    """Emergencies first, then newest first within each group"""
    by_recency = sorted(appointments, key=lambda a: a.created_at, reverse=True)
    return sorted(by_recency, key=lambda a: not a.is_emergency)


class AppointmentService:
    """Booking and the appointment status lifecycle"""

    def __init__(
        self,
        store: DocumentStore,
        availability: AvailabilityService,
        notifications: NotificationService,
        validator: Optional[BookingValidator] = None,
    ):
        self.store = store
        self.availability = availability
        self.notifications = notifications
        self.validator = validator or BookingValidator(availability)

    async def get(self, appointment_id: str) -> Appointment:
        document = await self.store.get(APPOINTMENTS, appointment_id)
        return parse_document(Appointment, APPOINTMENTS, document)

    async def _require_client(self, client_id: str) -> Client:
        document = await self.store.get(USERS, client_id)
        if document.get("role") != UserRole.CLIENT.value:
            raise NotFound(USERS, client_id)
        return parse_document(Client, USERS, document)

    # ==================== BOOKING ====================

    async def book(self, client_id: str, request: BookingRequest) -> Appointment:
        """
        Validate the requested slot and create a pending appointment

        The disease field doubles as the specialization the slot is
        looked up under.

        Raises:
            ValidationFailed: a required field is blank
            NotFound: unknown client or provider
            SlotUnavailable: slot not published (or, with the occupancy
                guard on, already held)
        """
        require_fields(request.model_dump(), required=("provider_id",) + REQUIRED_BOOKING_FIELDS)
        await self._require_client(client_id)
        await self.availability.get_provider(request.provider_id)

        await self.validator.validate(request.provider_id, request.disease, request.day, request.time)
        day = normalize_day(request.day)
        time = request.time.strip()
        if settings.ENFORCE_SLOT_OCCUPANCY:
            await self._ensure_unoccupied(request.provider_id, request.disease, day, time)

        return await self._create(
            client_id=client_id,
            provider_id=request.provider_id,
            pet_name=request.pet_name.strip(),
            disease=request.disease.strip(),
            requested_day=day,
            requested_time=time,
            status=AppointmentStatus.PENDING,
        )

    async def book_emergency(self, client_id: str, request: EmergencyBookingRequest) -> Appointment:
        """
        Create an emergency appointment in emergency_pending

        The slot is checked against the emergency window rather than the
        provider's published schedule.
        """
        require_fields(request.model_dump(), required=("provider_id",) + REQUIRED_BOOKING_FIELDS)
        await self._require_client(client_id)
        await self.availability.get_provider(request.provider_id)
        day = validate_emergency_slot(request.provider_id, request.day, request.time)

        return await self._create(
            client_id=client_id,
            provider_id=request.provider_id,
            pet_name=request.pet_name.strip(),
            disease=request.disease.strip(),
            requested_day=day,
            requested_time=request.time.strip(),
            status=AppointmentStatus.EMERGENCY_PENDING,
            is_emergency=True,
        )

    async def _ensure_unoccupied(self, provider_id: str, specialization: str, day: str, time: str) -> None:
        for held in await self._query(provider_id=provider_id):
            if held.status in LIVE_STATUSES and held.requested_day == day and held.requested_time == time:
                raise SlotUnavailable(provider_id, specialization, day, time, "already booked")

    async def _create(self, **fields) -> Appointment:
        appointment = Appointment(id="new", created_at=_now(), **fields)
        appointment_id = await self.store.create(APPOINTMENTS, appointment.to_document())
        appointment = appointment.model_copy(update={"id": appointment_id})
        logger.info(
            "Appointment %s booked: client=%s provider=%s %s %s status=%s",
            appointment_id, appointment.client_id, appointment.provider_id,
            appointment.requested_day, appointment.requested_time, appointment.status.value,
        )
        return appointment

    # ==================== PROVIDER TRANSITIONS ====================

    async def approve(self, appointment_id: str, provider_id: Optional[str] = None) -> TransitionResult:
        """pending/emergency_pending -> approved; notifies the client"""
        return await self._transition(appointment_id, AppointmentAction.APPROVE, provider_id, APPROVED_MESSAGE)

    async def reschedule_by_provider(self, appointment_id: str, provider_id: Optional[str] = None) -> TransitionResult:
        """pending -> rescheduled; notifies the client to pick a new slot"""
        return await self._transition(appointment_id, AppointmentAction.RESCHEDULE, provider_id, RESCHEDULED_MESSAGE)

    async def mark_seen(self, appointment_id: str, provider_id: Optional[str] = None) -> TransitionResult:
        """pending -> seen; no notification"""
        return await self._transition(appointment_id, AppointmentAction.MARK_SEEN, provider_id, None)

    async def _transition(
        self,
        appointment_id: str,
        action: AppointmentAction,
        actor_id: Optional[str],
        client_message: Optional[str],
    ) -> TransitionResult:
        appointment = await self.get(appointment_id)
        if actor_id is not None:
            check_actor(appointment, action, actor_id)
        target = next_status(appointment, action)

        # provider_id guards against a concurrent emergency transfer, which
        # keeps the status but moves the appointment to another provider
        await self.store.update(
            APPOINTMENTS,
            appointment_id,
            {"status": target.value},
            expected={"status": appointment.status.value, "provider_id": appointment.provider_id},
        )
        logger.info(
            "Appointment %s %s -> %s (%s by %s)",
            appointment_id, appointment.status.value, target.value, action.value, actor_id or "system",
        )

        notification_id = None
        if client_message:
            notification_id = await self.notifications.emit(
                appointment.client_id, NotificationKind.APPOINTMENT_UPDATE, client_message
            )
        return TransitionResult(
            appointment=appointment.model_copy(update={"status": target}),
            previous_status=appointment.status,
            notification_id=notification_id,
        )

    # ==================== CLIENT RESCHEDULE ====================

    async def reschedule_options(
        self,
        appointment_id: str,
        client_id: Optional[str] = None,
        day: Optional[str] = None,
    ) -> RescheduleOptions:
        """
        Days the client may move to (original day excluded), and slots for `day`

        Raises:
            InvalidTransition: appointment is not in rescheduled
        """
        appointment = await self.get(appointment_id)
        if client_id is not None:
            check_actor(appointment, AppointmentAction.CLIENT_RESCHEDULE, client_id)
        next_status(appointment, AppointmentAction.CLIENT_RESCHEDULE)

        days = [
            d for d in await self.availability.list_days(appointment.provider_id, appointment.disease)
            if d != appointment.requested_day
        ]
        options = RescheduleOptions(
            appointment_id=appointment.id,
            provider_id=appointment.provider_id,
            specialization=appointment.disease,
            days=days,
        )
        if day:
            try:
                key = normalize_day(day)
            except ValueError:
                key = None
            options.day = key or day
            if key in days:
                options.slots = await self.availability.list_slots(appointment.provider_id, appointment.disease, key)
        return options

    async def reschedule_by_client(
        self,
        appointment_id: str,
        request: ClientRescheduleRequest,
        client_id: Optional[str] = None,
    ) -> RescheduleResult:
        """
        Replace a provider-rescheduled appointment with a new pending one

        The successor is created and the original marked rescheduled_by_user
        in one commit. On a store without multi-document transactions the two
        writes run in sequence and a failure of the second is reported as
        PartialTransactionFailure.

        Raises:
            InvalidTransition: original is not in rescheduled
            ValidationFailed: day or time blank
            SlotUnavailable: new slot not published, or same day as the original
            Conflict: original changed concurrently (nothing written)
            PartialTransactionFailure: successor written, original not marked
        """
        original = await self.get(appointment_id)
        if client_id is not None:
            check_actor(original, AppointmentAction.CLIENT_RESCHEDULE, client_id)
        target = next_status(original, AppointmentAction.CLIENT_RESCHEDULE)
        require_fields(request.model_dump(), required=("day", "time"))

        await self.validator.validate(
            original.provider_id,
            original.disease,
            request.day,
            request.time,
            exclude_day=original.requested_day,
        )
        day = normalize_day(request.day)
        time = request.time.strip()
        if settings.ENFORCE_SLOT_OCCUPANCY:
            await self._ensure_unoccupied(original.provider_id, original.disease, day, time)

        successor = Appointment(
            id="new",
            client_id=original.client_id,
            provider_id=original.provider_id,
            pet_name=original.pet_name,
            disease=original.disease,
            requested_day=day,
            requested_time=time,
            status=AppointmentStatus.PENDING,
            created_at=_now(),
            original_appointment_id=original.id,
        )
        mark_original = UpdateOp(
            APPOINTMENTS,
            original.id,
            {"status": target.value},
            expected={"status": original.status.value},
        )

        if self.store.supports_transactions:
            [successor_id] = await self.store.commit(
                [CreateOp(APPOINTMENTS, successor.to_document())],
                [mark_original],
            )
        else:
            successor_id = await self.store.create(APPOINTMENTS, successor.to_document())
            try:
                await self.store.update(
                    mark_original.collection, mark_original.doc_id, mark_original.fields, mark_original.expected
                )
            except Exception as e:
                logger.error(
                    "Reschedule of %s left successor %s unreconciled: %s", original.id, successor_id, e
                )
                raise PartialTransactionFailure(original.id, successor_id) from e

        logger.info("Appointment %s rescheduled by client as %s", original.id, successor_id)
        return RescheduleResult(
            original=original.model_copy(update={"status": target}),
            successor=successor.model_copy(update={"id": successor_id}),
        )

    async def find_unreconciled_reschedules(self, client_id: str) -> List[Appointment]:
        """Successors whose original is still waiting in rescheduled"""
        appointments = await self._query(client_id=client_id)
        by_id = {a.id: a for a in appointments}
        return [
            a for a in appointments
            if a.original_appointment_id
            and a.original_appointment_id in by_id
            and by_id[a.original_appointment_id].status is AppointmentStatus.RESCHEDULED
        ]

    async def reconcile_reschedule(self, successor_id: str, client_id: Optional[str] = None) -> Appointment:
        """
        Finish a partially applied client reschedule

        Idempotent: an original already in rescheduled_by_user is returned
        as is.

        Raises:
            ValidationFailed: the appointment is not a reschedule successor
            Conflict: the original has moved to some other status
        """
        successor = await self.get(successor_id)
        if client_id is not None:
            check_actor(successor, AppointmentAction.CLIENT_RESCHEDULE, client_id)
        if not successor.original_appointment_id:
            raise ValidationFailed(f"Appointment {successor_id} is not a reschedule", fields=["original_appointment_id"])

        original = await self.get(successor.original_appointment_id)
        if original.status is AppointmentStatus.RESCHEDULED_BY_USER:
            return original
        if original.status is not AppointmentStatus.RESCHEDULED:
            raise Conflict(
                f"Original appointment {original.id} is {original.status.value}; successor {successor_id} needs manual review",
                expected={"status": AppointmentStatus.RESCHEDULED.value},
                actual={"status": original.status.value},
            )

        target = next_status(original, AppointmentAction.CLIENT_RESCHEDULE)
        await self.store.update(
            APPOINTMENTS,
            original.id,
            {"status": target.value},
            expected={"status": original.status.value},
        )
        logger.info("Reconciled reschedule: %s -> %s (successor %s)", original.id, target.value, successor_id)
        return original.model_copy(update={"status": target})

    # ==================== LISTING ====================

    async def _query(self, **filters) -> List[Appointment]:
        """Matching appointments; malformed documents are logged and skipped"""
        appointments = []
        for document in await self.store.query(APPOINTMENTS, **filters):
            try:
                appointments.append(parse_document(Appointment, APPOINTMENTS, document))
            except MalformedDocument as e:
                logger.warning("Skipping appointment: %s", e.message)
        return appointments

    async def _names(self, user_ids: Iterable[str]) -> Dict[str, Optional[str]]:
        names: Dict[str, Optional[str]] = {}
        for user_id in set(user_ids):
            try:
                names[user_id] = (await self.store.get(USERS, user_id)).get("name") or ""
            except NotFound:
                names[user_id] = None
        return names

    async def list_for_provider(self, provider_id: str) -> List[AppointmentView]:
        """Provider's appointments, emergencies first, newest first"""
        appointments = sort_for_provider(await self._query(provider_id=provider_id))
        names = await self._names(a.client_id for a in appointments)
        return [
            AppointmentView(**a.model_dump(), client_name=names[a.client_id])
            for a in appointments
        ]

    async def list_for_client(self, client_id: str) -> List[AppointmentView]:
        """Client's appointments, newest first"""
        appointments = sorted(await self._query(client_id=client_id), key=lambda a: a.created_at, reverse=True)
        names = await self._names(a.provider_id for a in appointments)
        return [
            AppointmentView(**a.model_dump(), provider_name=names[a.provider_id])
            for a in appointments
        ]
