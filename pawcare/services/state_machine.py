"""
Appointment status lifecycle

    pending ------------ approve ----------> approved
    pending ------------ reschedule -------> rescheduled
    pending ------------ mark_seen --------> seen
    rescheduled -------- client_reschedule -> rescheduled_by_user (+ new pending successor)
    emergency_pending -- approve ----------> approved
    emergency_pending -- transfer ---------> emergency_pending (new provider)

approved, seen and rescheduled_by_user have no outgoing edges.
"""
from enum import Enum
from typing import Dict, Tuple

from ..errors import InvalidTransition, NotPermitted
from ..models import Appointment, AppointmentStatus


class Actor(str, Enum):
    PROVIDER = "provider"
    CLIENT = "client"


class AppointmentAction(str, Enum):
    APPROVE = "approve"
    RESCHEDULE = "reschedule"
    MARK_SEEN = "mark_seen"
    TRANSFER = "transfer"
    CLIENT_RESCHEDULE = "client_reschedule"


ACTION_ACTORS: Dict[AppointmentAction, Actor] = {
    AppointmentAction.APPROVE: Actor.PROVIDER,
    AppointmentAction.RESCHEDULE: Actor.PROVIDER,
    AppointmentAction.MARK_SEEN: Actor.PROVIDER,
    AppointmentAction.TRANSFER: Actor.PROVIDER,
    AppointmentAction.CLIENT_RESCHEDULE: Actor.CLIENT,
}

TRANSITIONS: Dict[Tuple[AppointmentStatus, AppointmentAction], AppointmentStatus] = {
    (AppointmentStatus.PENDING, AppointmentAction.APPROVE): AppointmentStatus.APPROVED,
    (AppointmentStatus.PENDING, AppointmentAction.RESCHEDULE): AppointmentStatus.RESCHEDULED,
    (AppointmentStatus.PENDING, AppointmentAction.MARK_SEEN): AppointmentStatus.SEEN,
    (AppointmentStatus.RESCHEDULED, AppointmentAction.CLIENT_RESCHEDULE): AppointmentStatus.RESCHEDULED_BY_USER,
    (AppointmentStatus.EMERGENCY_PENDING, AppointmentAction.APPROVE): AppointmentStatus.APPROVED,
    (AppointmentStatus.EMERGENCY_PENDING, AppointmentAction.TRANSFER): AppointmentStatus.EMERGENCY_PENDING,
}

_PAST_TENSE = {
    AppointmentAction.APPROVE: "approved",
    AppointmentAction.RESCHEDULE: "rescheduled",
    AppointmentAction.MARK_SEEN: "marked as seen",
    AppointmentAction.TRANSFER: "transferred",
    AppointmentAction.CLIENT_RESCHEDULE: "rescheduled by the client",
}


def next_status(appointment: Appointment, action: AppointmentAction) -> AppointmentStatus:
    """
    Target status for `action` from the appointment's current status

    Raises:
        InvalidTransition: no such edge
    """
    target = TRANSITIONS.get((appointment.status, action))
    if target is None:
        raise InvalidTransition(appointment.id, appointment.status.value, _PAST_TENSE[action])
    return target


def check_actor(appointment: Appointment, action: AppointmentAction, actor_id: str) -> None:
    """
    Only the appointment's provider may run provider actions, only its
    client may run client actions.

    Raises:
        NotPermitted
    """
    if ACTION_ACTORS[action] is Actor.PROVIDER:
        owner = appointment.provider_id
    else:
        owner = appointment.client_id
    if actor_id != owner:
        raise NotPermitted(
            f"Only the appointment's {ACTION_ACTORS[action].value} may {action.value.replace('_', ' ')} "
            f"appointment {appointment.id}"
        )
