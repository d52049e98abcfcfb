"""
FastAPI dependency injection functions
These wire the document store into the scheduling services
"""
from functools import lru_cache

from fastapi import Depends

from .config import settings
from .services.appointment_service import AppointmentService
from .services.availability_service import AvailabilityService
from .services.document_store import DocumentStore, InMemoryDocumentStore
from .services.emergency_service import EmergencyService
from .services.notification_service import NotificationService


@lru_cache
def get_store() -> DocumentStore:
    """
    Process-wide document store selected by STORE_BACKEND

    Tests override this dependency with their own in-memory store.
    """
    if settings.STORE_BACKEND == "memory":
        return InMemoryDocumentStore()
    if settings.STORE_BACKEND == "firestore":
        # Imported lazily so the memory backend runs without Firebase credentials
        from .services.firebase_service import FirestoreDocumentStore
        return FirestoreDocumentStore()
    raise ValueError(f"Unknown STORE_BACKEND '{settings.STORE_BACKEND}'")


def get_availability_service(store: DocumentStore = Depends(get_store)) -> AvailabilityService:
    return AvailabilityService(store)


def get_notification_service(store: DocumentStore = Depends(get_store)) -> NotificationService:
    return NotificationService(store)


def get_appointment_service(
    store: DocumentStore = Depends(get_store),
    availability: AvailabilityService = Depends(get_availability_service),
    notifications: NotificationService = Depends(get_notification_service),
) -> AppointmentService:
    return AppointmentService(store, availability, notifications)


def get_emergency_service(
    store: DocumentStore = Depends(get_store),
    availability: AvailabilityService = Depends(get_availability_service),
    notifications: NotificationService = Depends(get_notification_service),
) -> EmergencyService:
    return EmergencyService(store, availability, notifications)
