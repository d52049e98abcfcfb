"""
Shared fixtures: an in-memory store seeded with a small clinic directory
"""
from datetime import datetime, timedelta, timezone

import pytest

from pawcare.services.appointment_service import AppointmentService
from pawcare.services.availability_service import AvailabilityService
from pawcare.services.document_store import APPOINTMENTS, USERS, InMemoryDocumentStore
from pawcare.services.emergency_service import EmergencyService
from pawcare.services.notification_service import NotificationService

BASE_TIME = datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc)

PROVIDERS = {
    "A": {
        "name": "Dr. A",
        "role": "provider",
        "specializations": [
            {"name": "Dental", "schedule": {"Monday": ["9:00 AM", "10:00 AM"], "Wednesday": ["2:00 PM"]}},
            {"name": "Skin", "schedule": {"Friday": ["11:00 AM"]}},
        ],
    },
    "B": {
        "name": "Dr. B",
        "role": "provider",
        "specializations": [{"name": "skin", "schedule": {"Tuesday": ["9:00 AM"]}}],
    },
    "C": {
        "name": "Dr. C",
        "role": "provider",
        "specializations": [{"name": "SKIN", "schedule": {"Thursday": ["3:00 PM"]}}],
    },
    "D": {
        "name": "Dr. D",
        "role": "provider",
        "specializations": [{"name": "Dental", "schedule": {"Monday": ["9:00 AM"]}}],
    },
}

CLIENTS = {
    "owner-1": {"name": "Alice", "role": "client"},
    "owner-2": {"name": "Bob", "role": "client"},
}


def appointment_record(**overrides):
    """Stored appointment document with sensible defaults"""
    record = {
        "client_id": "owner-1",
        "provider_id": "A",
        "pet_name": "Rex",
        "disease": "Dental",
        "requested_day": "Monday",
        "requested_time": "9:00 AM",
        "status": "pending",
        "created_at": BASE_TIME,
        "is_emergency": False,
        "original_appointment_id": None,
    }
    record.update(overrides)
    return record


def seed_directory(store):
    for provider_id, record in PROVIDERS.items():
        store.seed(USERS, provider_id, record)
    for client_id, record in CLIENTS.items():
        store.seed(USERS, client_id, record)


@pytest.fixture
def store():
    store = InMemoryDocumentStore()
    seed_directory(store)
    return store


@pytest.fixture
def seed_appointment(store):
    """Seed an appointment document; returns its ID"""
    def _seed(appointment_id, minutes=0, **overrides):
        overrides.setdefault("created_at", BASE_TIME + timedelta(minutes=minutes))
        store.seed(APPOINTMENTS, appointment_id, appointment_record(**overrides))
        return appointment_id
    return _seed


@pytest.fixture
def availability(store):
    return AvailabilityService(store)


@pytest.fixture
def notifications(store):
    return NotificationService(store)


@pytest.fixture
def appointments(store, availability, notifications):
    return AppointmentService(store, availability, notifications)


@pytest.fixture
def emergency(store, availability, notifications):
    return EmergencyService(store, availability, notifications)
