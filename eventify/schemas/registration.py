"""Pydantic schemas for Registrations."""
from __future__ import annotations
import datetime as dt
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator

from eventify.clock import local_today
from eventify.domain import EventAvailability, RegistrationStatus, RegistrationWithEvent
from eventify.schemas.event import EventOut


class ParticipantIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=20)
    birthdate: dt.date

    model_config = {"str_strip_whitespace": True}

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower()

    @field_validator("birthdate")
    @classmethod
    def not_in_future(cls, v, info: ValidationInfo):
        # "today" may be pinned through the validation context
        today = (info.context or {}).get("today") or local_today()
        if v > today:
            raise ValueError("Birthdate cannot be in the future")
        return v


class ParticipantList(BaseModel):
    participants: list[ParticipantIn] = Field(..., min_length=1)


class ParticipantOut(BaseModel):
    name: str
    email: str
    phone: str
    birthdate: dt.date

    model_config = {"from_attributes": True}


class RegistrationCreate(BaseModel):
    event_id: str
    participants: Optional[list[ParticipantIn]] = None
    idempotency_key: Optional[str] = Field(None, max_length=255)


class RegistrationOut(BaseModel):
    registration_id: str
    event_id: str
    user_id: str
    participants: list[ParticipantOut]
    registered_at: dt.datetime
    status: RegistrationStatus
    idempotency_key: Optional[str] = None
    cancelled_at: Optional[dt.datetime] = None

    model_config = {"from_attributes": True}


class MyRegistrationOut(RegistrationOut):
    event: EventOut

    @classmethod
    def from_joined(cls, item: RegistrationWithEvent, availability: EventAvailability) -> MyRegistrationOut:
        registration = RegistrationOut.model_validate(item.registration)
        return cls(
            **registration.model_dump(),
            event=EventOut.from_availability(availability),
        )
