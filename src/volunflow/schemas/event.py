"""Pydantic schemas for events and volunteer signups."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from volunflow.schemas.base import CamelModel


class EventCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=10000)
    date: datetime
    location: str = Field(..., min_length=1, max_length=500)
    tags: list[str] = Field(default_factory=list)
    image_url: Optional[str] = Field(None, max_length=1024)
    max_volunteers: Optional[int] = Field(None, ge=1)


class EventUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=10000)
    date: Optional[datetime] = None
    location: Optional[str] = Field(None, min_length=1, max_length=500)
    tags: Optional[list[str]] = None
    image_url: Optional[str] = Field(None, max_length=1024)
    max_volunteers: Optional[int] = Field(None, ge=1)


class EventRead(CamelModel):
    id: uuid.UUID
    ngo_id: uuid.UUID
    title: str
    description: str
    date: datetime
    location: str
    tags: list[str]
    image_url: Optional[str] = None
    max_volunteers: Optional[int] = None


class SignupRead(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    event_id: uuid.UUID
    status: str
    created_at: datetime


class AttendeeRead(CamelModel):
    id: uuid.UUID
    name: str
    email: str
