"""
Domain errors raised by the scheduling engine

Every condition a caller can act on is a subclass of SchedulingError.
Failures of the backing store itself (network, permissions, quota) are
not wrapped and reach the caller as raised by the client library.
"""
from typing import Any, Mapping, Optional


class SchedulingError(Exception):
    """Base class for all scheduling engine errors"""

    kind = "scheduling_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.message}


class NotFound(SchedulingError):
    """Referenced provider, client, appointment or notification is absent"""

    kind = "not_found"

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


class SlotUnavailable(SchedulingError):
    """Requested day/time is not published by the provider"""

    kind = "slot_unavailable"

    def __init__(self, provider_id: str, specialization: str, day: str, time: str, reason: str = ""):
        message = f"{day} {time} is not available for '{specialization}' with provider {provider_id}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.provider_id = provider_id
        self.specialization = specialization
        self.day = day
        self.time = time


class ValidationFailed(SchedulingError):
    """A required field is missing or malformed; raised before any write"""

    kind = "validation_failed"

    def __init__(self, message: str, fields: Optional[list] = None):
        super().__init__(message)
        self.fields = fields or []

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.fields:
            data["fields"] = self.fields
        return data


class MalformedDocument(ValidationFailed):
    """A stored document does not have the shape its collection requires"""

    kind = "malformed_document"

    def __init__(self, collection: str, doc_id: Optional[str], problems: str):
        super().__init__(f"{collection}/{doc_id or '?'} is malformed: {problems}")
        self.collection = collection
        self.doc_id = doc_id


class Conflict(SchedulingError):
    """The document no longer matches the state the caller expected

    Refetch and decide again; never retry with the stale intent.
    """

    kind = "conflict"

    def __init__(self, message: str, expected: Optional[Mapping[str, Any]] = None, actual: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.expected = dict(expected or {})
        self.actual = dict(actual or {})


class InvalidTransition(Conflict):
    """The appointment's current status has no edge for the requested action"""

    kind = "invalid_transition"

    def __init__(self, appointment_id: str, status: str, action: str):
        super().__init__(
            f"Appointment {appointment_id} in status '{status}' cannot be {action}",
            actual={"status": status},
        )
        self.appointment_id = appointment_id
        self.status = status
        self.action = action


class NotPermitted(SchedulingError):
    """The acting user is not the party allowed to trigger this action"""

    kind = "not_permitted"


class NoAlternateProvider(SchedulingError):
    """Emergency transfer found no other provider offering the specialization"""

    kind = "no_alternate_provider"

    def __init__(self, appointment_id: str, specialization: str):
        super().__init__(
            f"No other provider offers '{specialization}'; appointment {appointment_id} left unchanged"
        )
        self.appointment_id = appointment_id
        self.specialization = specialization


class PartialTransactionFailure(SchedulingError):
    """The successor appointment was written but the original was not marked

    The store now holds two live appointments for one booking. Run
    reconciliation on `successor_id` to repair it.
    """

    kind = "partial_transaction_failure"

    def __init__(self, original_id: str, successor_id: str):
        super().__init__(
            f"Reschedule of {original_id} created {successor_id} but did not mark the original"
        )
        self.original_id = original_id
        self.successor_id = successor_id

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["original_id"] = self.original_id
        data["successor_id"] = self.successor_id
        return data
