"""Pydantic schemas for account and session endpoints.

UserRead is the "stripped" user: password_hash and refresh_token_hash are
simply not fields here, so they can never be serialized by accident.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from volunflow.db.models import AuthProvider, UserRole
from volunflow.schemas.base import CamelModel


class RegisterRequest(CamelModel):
    email: EmailStr
    name: str = Field(..., min_length=2, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)
    avatar_url: Optional[str] = Field(None, max_length=1024)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class UserRead(CamelModel):
    id: uuid.UUID
    email: str
    name: str
    avatar_url: Optional[str] = None
    auth_provider: AuthProvider
    role: UserRole
    admin_of_ngo_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None


class MessageResponse(CamelModel):
    message: str
