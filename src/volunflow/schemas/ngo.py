"""Pydantic schemas for NGOs and their branches.

No create schema accepts an ngo_id: owned resources are always stamped
with the acting admin's own tenant on the server side.
"""

import re
import uuid
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from volunflow.schemas.base import CamelModel


# ─── NGOs ───────────────────────────────────────────────

def slugify(name: str) -> str:
    """'Save the Whales!' → 'save-the-whales'"""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def _check_sluggable(name: Optional[str]) -> Optional[str]:
    # The public URL is /ngos/{slug}; a name that slugs to "" has no address.
    if name is not None and not slugify(name):
        raise ValueError("Name must contain at least one letter or digit (a-z, 0-9).")
    return name


class NgoCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=200)
    description: str = Field(default="", max_length=5000)
    contact_email: EmailStr
    logo_url: Optional[str] = Field(None, max_length=1024)
    website: Optional[str] = Field(None, max_length=1024)

    @field_validator("name")
    @classmethod
    def name_has_slug(cls, v: Optional[str]) -> Optional[str]:
        return _check_sluggable(v)


class NgoUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    contact_email: Optional[EmailStr] = None
    logo_url: Optional[str] = Field(None, max_length=1024)
    website: Optional[str] = Field(None, max_length=1024)

    @field_validator("name")
    @classmethod
    def name_has_slug(cls, v: Optional[str]) -> Optional[str]:
        return _check_sluggable(v)


class NgoRead(CamelModel):
    id: uuid.UUID
    name: str
    slug: str
    description: str
    contact_email: str
    logo_url: Optional[str] = None
    website: Optional[str] = None
    created_at: datetime


# ─── Branches ───────────────────────────────────────────

class BranchCreate(CamelModel):
    address: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=100)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class BranchRead(CamelModel):
    id: uuid.UUID
    ngo_id: uuid.UUID
    address: str
    city: str
    latitude: float
    longitude: float
