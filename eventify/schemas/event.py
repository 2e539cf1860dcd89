"""Pydantic schemas for Events.

EventCreate and EventUpdate carry every field rule; the event store
validates drafts and patches through them, so API and offline callers get
the same field-level errors.
"""
from __future__ import annotations
import datetime as dt
from typing import Any, Optional
from pydantic import BaseModel, Field, field_validator

from eventify.domain import EventAvailability, EventCategory

TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"

REQUIRED_EVENT_FIELDS = ("title", "city", "category", "date", "time", "location", "capacity")


def _normalise_time(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{minutes}"


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    category: EventCategory
    date: dt.date
    time: str = Field(..., pattern=TIME_PATTERN, description="HH:MM, 24-hour")
    location: str = Field(..., min_length=1, max_length=255)
    capacity: int = Field(..., ge=1, strict=True)
    description: str = ""
    image_url: Optional[str] = Field(None, max_length=500)

    model_config = {"str_strip_whitespace": True, "extra": "forbid"}

    @field_validator("time")
    @classmethod
    def normalise_time(cls, v):
        return _normalise_time(v)

    @field_validator("description", mode="before")
    @classmethod
    def blank_description(cls, v):
        return "" if v is None else v

    @field_validator("image_url")
    @classmethod
    def blank_image_url(cls, v):
        return v or None


class EventUpdate(BaseModel):
    """Partial update; only the keys sent are applied."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[EventCategory] = None
    date: Optional[dt.date] = None
    time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    capacity: Optional[int] = Field(None, ge=1, strict=True)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=500)

    model_config = {"str_strip_whitespace": True, "extra": "forbid"}

    @field_validator(*REQUIRED_EVENT_FIELDS, mode="before")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @field_validator("time")
    @classmethod
    def normalise_time(cls, v):
        return _normalise_time(v)

    @field_validator("description", mode="before")
    @classmethod
    def blank_description(cls, v):
        return "" if v is None else v

    @field_validator("image_url")
    @classmethod
    def blank_image_url(cls, v):
        return v or None

    def changes(self) -> dict[str, Any]:
        return {key: getattr(self, key) for key in self.model_fields_set}


class EventOut(BaseModel):
    event_id: str
    title: str
    city: str
    category: EventCategory
    date: dt.date
    time: str
    location: str
    capacity: int
    description: str
    image_url: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
    registered_count: int = 0
    available_spots: int = 0
    is_full: bool = False

    model_config = {"from_attributes": True}

    @classmethod
    def from_availability(cls, availability: EventAvailability) -> EventOut:
        return cls.model_validate({
            **availability.event.to_dict(),
            "registered_count": availability.registered_count,
            "available_spots": availability.available_spots,
            "is_full": availability.is_full,
        })
