"""
Day keys used in provider schedules and appointments

A day key is either a weekday name (recurring weekly schedule, produced by
the provider schedule editor) or an ISO calendar date (one-off availability
and emergency bookings). A single schedule never mixes the two.
"""
from datetime import date
from enum import Enum
from typing import Iterable, Union


class Weekday(str, Enum):
    """Weekday names as published by providers"""
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


DayKey = Union[Weekday, date]

_WEEKDAYS_BY_NAME = {day.value.casefold(): day for day in Weekday}


def parse_day_key(value: Union[str, DayKey]) -> DayKey:
    """
    Parse a stored or requested day label

    Weekday names are matched case-insensitively, anything else must be
    an ISO date (YYYY-MM-DD).

    Raises:
        ValueError: if the value is neither
    """
    if isinstance(value, Weekday):
        return value
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Day key must be a string, got {type(value).__name__}")

    text = value.strip()
    weekday = _WEEKDAYS_BY_NAME.get(text.casefold())
    if weekday is not None:
        return weekday
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise ValueError(f"'{value}' is neither a weekday name nor an ISO date") from None


def format_day_key(key: DayKey) -> str:
    """Canonical string form used in documents"""
    if isinstance(key, Weekday):
        return key.value
    return key.isoformat()


def normalize_day(value: Union[str, DayKey]) -> str:
    return format_day_key(parse_day_key(value))


def day_key_kind(key: DayKey) -> str:
    return "weekday" if isinstance(key, Weekday) else "date"


def ensure_homogeneous(keys: Iterable[DayKey]) -> None:
    """Raise ValueError if weekday names and dates are mixed"""
    kinds = {day_key_kind(key) for key in keys}
    if len(kinds) > 1:
        raise ValueError("Schedule mixes weekday names and calendar dates")
