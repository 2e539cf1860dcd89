"""Pydantic schemas for Users."""
from __future__ import annotations
import datetime as dt
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    phone: str = Field("", max_length=20)
    birthdate: Optional[dt.date] = None
    is_admin: bool = False

    model_config = {"str_strip_whitespace": True}

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower()


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    phone: Optional[str] = Field(None, max_length=20)
    birthdate: Optional[dt.date] = None

    model_config = {"str_strip_whitespace": True}

    @field_validator("name", mode="before")
    @classmethod
    def name_not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class UserOut(BaseModel):
    user_id: str
    name: str
    email: str
    phone: str
    birthdate: Optional[dt.date] = None
    is_admin: bool
    created_at: Optional[dt.datetime] = None

    model_config = {"from_attributes": True}
