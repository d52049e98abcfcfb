import logging
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

import pytz

from ..config import settings
from ..errors import SlotUnavailable, ValidationFailed
from ..models import EmergencyWindow, parse_day_key, format_day_key
from .availability_service import AvailabilityService

logger = logging.getLogger(__name__)

REQUIRED_BOOKING_FIELDS = ("pet_name", "disease", "day", "time")


def require_fields(values: Dict[str, Optional[str]], required=REQUIRED_BOOKING_FIELDS) -> None:
    """
    Check that every required field is present and not blank

    Raises:
        ValidationFailed: listing every missing field
    """
    missing = [name for name in required if not (values.get(name) or "").strip()]
    if missing:
        raise ValidationFailed(
            f"Please fill all fields: missing {', '.join(missing)}",
            fields=missing,
        )


class BookingValidator:
    """Checks a requested slot against what the provider has published

    Only slot existence is checked. Whether another client already holds
    the slot is left to the optional occupancy guard in the appointment
    service.
    """

    def __init__(self, availability: AvailabilityService):
        self.availability = availability

    async def validate(
        self,
        provider_id: str,
        specialization: str,
        day: str,
        time: str,
        exclude_day: Optional[str] = None,
    ) -> None:
        """
        Raises:
            SlotUnavailable: day not published, time not published for that
                day, or day equal to `exclude_day`
        """
        try:
            key = format_day_key(parse_day_key(day))
        except ValueError:
            raise SlotUnavailable(provider_id, specialization, day, time, "unrecognized day") from None

        if exclude_day is not None and _same_day(key, exclude_day):
            raise SlotUnavailable(provider_id, specialization, day, time, "same day as the original appointment")

        days = await self.availability.list_days(provider_id, specialization)
        if key not in days:
            raise SlotUnavailable(provider_id, specialization, day, time, "day not offered")

        slots = await self.availability.list_slots(provider_id, specialization, key)
        if time.strip() not in slots:
            raise SlotUnavailable(provider_id, specialization, day, time, "time not offered")


def _same_day(key: str, other: str) -> bool:
    try:
        return key == format_day_key(parse_day_key(other))
    except ValueError:
        return False


def clinic_today(now: Optional[datetime] = None) -> date:
    """Current date in the clinic's timezone"""
    tz = pytz.timezone(settings.CLINIC_TIMEZONE)
    if now is None:
        return datetime.now(tz).date()
    if now.tzinfo is None:
        now = pytz.utc.localize(now)
    return now.astimezone(tz).date()


def emergency_window(today: Optional[date] = None) -> EmergencyWindow:
    """
    Days and times offered for emergency visits

    Days run from today for EMERGENCY_WINDOW_DAYS days as ISO dates; times
    are 24-hour labels every EMERGENCY_SLOT_MINUTES from EMERGENCY_FIRST_HOUR
    through the last slot that starts within EMERGENCY_LAST_HOUR.
    """
    today = today or clinic_today()
    days = [(today + timedelta(days=offset)).isoformat() for offset in range(settings.EMERGENCY_WINDOW_DAYS)]

    times: List[str] = []
    for hour in range(settings.EMERGENCY_FIRST_HOUR, settings.EMERGENCY_LAST_HOUR + 1):
        for minute in range(0, 60, settings.EMERGENCY_SLOT_MINUTES):
            times.append(f"{hour:02d}:{minute:02d}")
    return EmergencyWindow(days=days, times=times)


def validate_emergency_slot(provider_id: str, day: str, time: str, today: Optional[date] = None) -> str:
    """
    Check an emergency request against the emergency window

    Returns:
        The canonical ISO date

    Raises:
        SlotUnavailable: day not an ISO date in the window, or time not offered
    """
    window = emergency_window(today)
    try:
        key = parse_day_key(day)
    except ValueError:
        key = None
    if not isinstance(key, date):
        raise SlotUnavailable(provider_id, "emergency", day, time, "emergency visits need a calendar date")

    iso_day = format_day_key(key)
    if iso_day not in window.days:
        raise SlotUnavailable(provider_id, "emergency", day, time, "outside the emergency window")
    if time.strip() not in window.times:
        raise SlotUnavailable(provider_id, "emergency", day, time, "time not offered")
    return iso_day
