"""Domain models shared by every storage backend.

These are frozen dataclasses with no persistence or API concerns. Records
that are stored as JSON (local store, HTTP bodies) convert through a pydantic
TypeAdapter. ORM models live in eventify/models/, API schemas in
eventify/schemas/.
"""
import datetime as dt
import enum
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Optional

from pydantic import TypeAdapter


class EventCategory(str, enum.Enum):
    sports = "Sports"
    culture = "Culture"
    education = "Education"
    environment = "Environment"
    music_entertainment = "Music & Entertainment"


class RegistrationStatus(str, enum.Enum):
    active = "active"
    cancelled = "cancelled"


def same_user(first: Optional[str], second: Optional[str]) -> bool:
    """User ids compare case-insensitively (emails double as ids offline)."""
    if not first or not second:
        return False
    return first.strip().casefold() == second.strip().casefold()


@lru_cache(maxsize=None)
def _adapter(cls: type) -> TypeAdapter:
    return TypeAdapter(cls)


class JsonRecord:
    """Mixin for dataclasses that round-trip through JSON-compatible dicts.

    Dates and datetimes become ISO strings and enums their values; unknown
    keys are ignored when loading.
    """

    def to_dict(self) -> dict[str, Any]:
        return _adapter(type(self)).dump_python(self, mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        return _adapter(cls).validate_python(data)


@dataclass(frozen=True)
class Participant(JsonRecord):
    """A named attendee listed within a registration."""

    name: str
    email: str
    phone: str
    birthdate: dt.date


@dataclass(frozen=True)
class UserProfile(JsonRecord):
    """The caller's stored profile, used to build the default participant."""

    user_id: str
    name: str
    email: str
    phone: str = ""
    birthdate: Optional[dt.date] = None
    is_admin: bool = False

    def as_participant(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "birthdate": self.birthdate,
        }


@dataclass(frozen=True)
class Event(JsonRecord):
    """An administrator-published occasion with a capacity and schedule."""

    event_id: str
    title: str
    city: str
    category: EventCategory
    date: dt.date
    time: str  # HH:MM, 24h
    location: str
    capacity: int
    description: str = ""
    image_url: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @property
    def sort_key(self) -> tuple[dt.date, str]:
        return (self.date, self.time)


@dataclass(frozen=True)
class Registration(JsonRecord):
    """A user's claim on one or more capacity slots of an event."""

    registration_id: str
    event_id: str
    user_id: str
    participants: tuple[Participant, ...]
    registered_at: dt.datetime
    status: RegistrationStatus = RegistrationStatus.active
    idempotency_key: Optional[str] = None
    cancelled_at: Optional[dt.datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == RegistrationStatus.active

    @property
    def participant_count(self) -> int:
        return len(self.participants)


@dataclass(frozen=True)
class EventFilter:
    """AND-combined listing filter; unset keys do not restrict."""

    city: Optional[str] = None
    category: Optional[EventCategory] = None
    date: Optional[dt.date] = None
    search: Optional[str] = None
    upcoming_only: bool = False

    def matches(self, event: Event, today: dt.date) -> bool:
        if self.city and event.city.casefold() != self.city.strip().casefold():
            return False
        if self.category and event.category != EventCategory(self.category):
            return False
        if self.date and event.date != self.date:
            return False
        if self.upcoming_only and event.date < today:
            return False
        if self.search:
            haystack = f"{event.title} {event.description}".casefold()
            if self.search.strip().casefold() not in haystack:
                return False
        return True


@dataclass(frozen=True)
class EventAvailability:
    """An event together with its derived occupancy figures."""

    event: Event
    registered_count: int = 0

    @property
    def available_spots(self) -> int:
        return max(self.event.capacity - self.registered_count, 0)

    @property
    def is_full(self) -> bool:
        return self.registered_count >= self.event.capacity


@dataclass(frozen=True)
class RegistrationWithEvent:
    registration: Registration
    event: Event = field(compare=False)
