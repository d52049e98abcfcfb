import logging
from typing import List, Optional

from ..errors import NoAlternateProvider
from ..models import Appointment, NotificationKind, Provider, TransferResult, parse_document
from .availability_service import AvailabilityService
from .document_store import APPOINTMENTS, DocumentStore
from .notification_service import EMERGENCY_TRANSFER_MESSAGE, NotificationService
from .state_machine import AppointmentAction, check_actor, next_status

logger = logging.getLogger(__name__)


def find_alternate_providers(providers: List[Provider], specialization: str, exclude_id: str) -> List[Provider]:
    """Providers other than `exclude_id` offering `specialization` (case-insensitive), in directory order"""
    return [p for p in providers if p.id != exclude_id and p.offers(specialization)]


class EmergencyService:
    """Hands an emergency appointment over to another qualified provider"""

    def __init__(
        self,
        store: DocumentStore,
        availability: AvailabilityService,
        notifications: NotificationService,
    ):
        self.store = store
        self.availability = availability
        self.notifications = notifications

    async def transfer(self, appointment_id: str, provider_id: Optional[str] = None) -> TransferResult:
        """
        Move an emergency_pending appointment to the first other provider
        offering its specialization, and notify that provider.

        Qualification is re-checked against the live directory on every
        call. There is no ranking: the first match in directory order wins.

        Raises:
            NotFound: unknown appointment
            NotPermitted: `provider_id` is not the current provider
            InvalidTransition: appointment is not emergency_pending
            NoAlternateProvider: nobody else qualifies; appointment unchanged
            Conflict: appointment changed concurrently; nothing written
        """
        document = await self.store.get(APPOINTMENTS, appointment_id)
        appointment = parse_document(Appointment, APPOINTMENTS, document)
        if provider_id is not None:
            check_actor(appointment, AppointmentAction.TRANSFER, provider_id)
        target = next_status(appointment, AppointmentAction.TRANSFER)

        providers = await self.availability.list_providers()
        candidates = find_alternate_providers(providers, appointment.disease, appointment.provider_id)
        logger.info(
            "Emergency transfer of %s: looking for '%s', found %s",
            appointment_id, appointment.disease, [p.name or p.id for p in candidates],
        )
        if not candidates:
            raise NoAlternateProvider(appointment_id, appointment.disease)

        new_provider = candidates[0]
        await self.store.update(
            APPOINTMENTS,
            appointment_id,
            {"provider_id": new_provider.id, "status": target.value},
            expected={"status": appointment.status.value, "provider_id": appointment.provider_id},
        )
        logger.info(
            "Appointment %s transferred from provider %s to %s",
            appointment_id, appointment.provider_id, new_provider.id,
        )

        notification_id = await self.notifications.emit(
            new_provider.id, NotificationKind.EMERGENCY, EMERGENCY_TRANSFER_MESSAGE
        )
        return TransferResult(
            appointment=appointment.model_copy(update={"provider_id": new_provider.id, "status": target}),
            previous_status=appointment.status,
            notification_id=notification_id,
            previous_provider_id=appointment.provider_id,
            new_provider_id=new_provider.id,
        )
