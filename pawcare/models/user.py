from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from .day_key import ensure_homogeneous, format_day_key, parse_day_key


class UserRole(str, Enum):
    """Roles stored on documents in the users collection"""
    PROVIDER = "provider"
    CLIENT = "client"


def specialization_key(name: Optional[str]) -> str:
    """Matching key for free-text specialization names (case-folded, exact)"""
    return (name or "").strip().casefold()


class Specialization(BaseModel):
    """A named service a provider offers, with its own day -> slots schedule"""
    name: str = Field(..., min_length=1, max_length=100)
    schedule: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Specialization name must not be blank")
        return value

    @field_validator("schedule")
    @classmethod
    def _normalize_schedule(cls, value: Dict[str, List[str]]) -> Dict[str, List[str]]:
        keys = [parse_day_key(day) for day in value]
        ensure_homogeneous(keys)

        normalized: Dict[str, List[str]] = {}
        for key, slots in zip(keys, value.values()):
            day = format_day_key(key)
            if day in normalized:
                raise ValueError(f"Day '{day}' appears more than once")
            ordered: List[str] = []
            for slot in slots:
                label = slot.strip()
                if not label:
                    raise ValueError(f"Empty time slot on {day}")
                if label not in ordered:
                    ordered.append(label)
            normalized[day] = ordered
        return normalized

    @property
    def key(self) -> str:
        return specialization_key(self.name)

    def matches(self, name: Optional[str]) -> bool:
        return self.key == specialization_key(name)


class UserBase(BaseModel):
    """Any document in the users collection"""
    id: str
    name: str = ""
    email: Optional[EmailStr] = None
    role: UserRole


class Client(UserBase):
    """Pet owner"""
    role: UserRole = UserRole.CLIENT


class Provider(UserBase):
    """Doctor with published specializations"""
    role: UserRole = UserRole.PROVIDER
    specializations: List[Specialization] = Field(default_factory=list)

    def find_specialization(self, name: Optional[str]) -> Optional[Specialization]:
        key = specialization_key(name)
        for specialization in self.specializations:
            if specialization.key == key:
                return specialization
        return None

    def offers(self, name: Optional[str]) -> bool:
        return self.find_specialization(name) is not None


class ProviderPublic(BaseModel):
    """Directory entry: one row per (provider, specialization)"""
    provider_id: str
    name: str
    specialization: str
    schedule: Dict[str, List[str]]


class ScheduleUpdate(BaseModel):
    """Whole-schedule replacement for one specialization"""
    schedule: Dict[str, List[str]]
