"""Tests for the appointment transition table."""

from datetime import datetime, timezone

import pytest

from pawcare.errors import InvalidTransition, NotPermitted
from pawcare.models import Appointment, AppointmentStatus
from pawcare.services.state_machine import (
    TRANSITIONS,
    AppointmentAction,
    check_actor,
    next_status,
)


def make(status):
    return Appointment(
        id="X", client_id="owner-1", provider_id="A", pet_name="Rex", disease="Dental",
        requested_day="Monday", requested_time="9:00 AM", status=status,
        created_at=datetime(2025, 3, 3, tzinfo=timezone.utc),
    )


def actions_from(status):
    return {action for (source, action) in TRANSITIONS if source == status}


@pytest.mark.parametrize("status", [
    AppointmentStatus.APPROVED,
    AppointmentStatus.SEEN,
    AppointmentStatus.RESCHEDULED_BY_USER,
])
def test_terminal_statuses_have_no_edges(status):
    assert actions_from(status) == set()
    for action in AppointmentAction:
        with pytest.raises(InvalidTransition):
            next_status(make(status), action)


def test_nothing_leads_back_to_pending():
    assert AppointmentStatus.PENDING not in TRANSITIONS.values()


def test_pending_edges():
    assert actions_from(AppointmentStatus.PENDING) == {
        AppointmentAction.APPROVE,
        AppointmentAction.RESCHEDULE,
        AppointmentAction.MARK_SEEN,
    }


def test_emergency_edges():
    appointment = make(AppointmentStatus.EMERGENCY_PENDING)

    assert next_status(appointment, AppointmentAction.APPROVE) is AppointmentStatus.APPROVED
    assert next_status(appointment, AppointmentAction.TRANSFER) is AppointmentStatus.EMERGENCY_PENDING
    with pytest.raises(InvalidTransition):
        next_status(appointment, AppointmentAction.RESCHEDULE)


def test_rescheduled_only_moves_by_client():
    appointment = make(AppointmentStatus.RESCHEDULED)

    assert actions_from(AppointmentStatus.RESCHEDULED) == {AppointmentAction.CLIENT_RESCHEDULE}
    assert next_status(appointment, AppointmentAction.CLIENT_RESCHEDULE) is AppointmentStatus.RESCHEDULED_BY_USER


def test_check_actor():
    appointment = make(AppointmentStatus.PENDING)

    check_actor(appointment, AppointmentAction.APPROVE, "A")
    check_actor(appointment, AppointmentAction.CLIENT_RESCHEDULE, "owner-1")
    with pytest.raises(NotPermitted):
        check_actor(appointment, AppointmentAction.APPROVE, "owner-1")
    with pytest.raises(NotPermitted):
        check_actor(appointment, AppointmentAction.CLIENT_RESCHEDULE, "A")
