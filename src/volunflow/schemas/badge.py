"""Pydantic schemas for badge templates and awards."""

import uuid
from datetime import datetime

from pydantic import Field

from volunflow.schemas.base import CamelModel


class BadgeCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=2000)
    image_url: str = Field(default="", max_length=1024)
    criteria: str = Field(default="", max_length=2000)


class BadgeRead(CamelModel):
    id: uuid.UUID
    ngo_id: uuid.UUID
    name: str
    description: str
    image_url: str
    criteria: str


class AwardBadgeRequest(CamelModel):
    user_id: uuid.UUID


class EarnedBadgeRead(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    badge_id: uuid.UUID
    awarded_at: datetime
