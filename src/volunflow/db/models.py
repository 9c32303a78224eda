"""SQLAlchemy ORM models — single source of truth for the database schema.

Declarative 2.0 style (Mapped[] + mapped_column). Column types are the
portable ones (Uuid, JSON, non-native Enum) so the same models run on
PostgreSQL in production and SQLite in the test suite.

Tenant model: an NGO is the tenant. Event, Badge and Branch each carry an
ngo_id; the authorization guard compares it with the acting admin's
admin_of_ngo_id before any write.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class UserRole(str, enum.Enum):
    VOLUNTEER = "VOLUNTEER"
    NGO_ADMIN = "NGO_ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class AuthProvider(str, enum.Enum):
    EMAIL = "EMAIL"
    GOOGLE = "GOOGLE"
    FACEBOOK = "FACEBOOK"


# ══════════════════════════════════════════════════════════════
# Identity
# ══════════════════════════════════════════════════════════════


class User(Base):
    """A person using the platform — volunteer, NGO admin or super admin.

    password_hash is NULL for accounts that only ever signed in through an
    OAuth provider. refresh_token_hash holds the bcrypt hash of the single
    live refresh token; only the token service writes it.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    password_hash: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )  # nullable for OAuth
    auth_provider: Mapped[AuthProvider] = mapped_column(
        Enum(AuthProvider, native_enum=False, length=20),
        nullable=False,
        default=AuthProvider.EMAIL,
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, native_enum=False, length=20),
        nullable=False,
        default=UserRole.VOLUNTEER,
    )
    admin_of_ngo_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("ngos.id"), unique=True, nullable=True
    )
    refresh_token_hash: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )


# ══════════════════════════════════════════════════════════════
# Tenants and owned resources
# ══════════════════════════════════════════════════════════════


class Ngo(Base):
    """An NGO — the tenant boundary for admin-scoped mutations."""

    __tablename__ = "ngos"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    contact_email: Mapped[str] = mapped_column(String(255), nullable=False)
    logo_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    events: Mapped[list["Event"]] = relationship(back_populates="ngo")


class Event(Base):
    """A volunteering event run by an NGO."""

    __tablename__ = "events"
    __table_args__ = (Index("idx_events_ngo_date", "ngo_id", "date"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    ngo_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("ngos.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    location: Mapped[str] = mapped_column(String(500), nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    max_volunteers: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    ngo: Mapped["Ngo"] = relationship(back_populates="events")
    signups: Mapped[list["Signup"]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )


class Signup(Base):
    """A volunteer's registration for an event."""

    __tablename__ = "signups"
    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_signups_user_event"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="CONFIRMED"
    )  # CONFIRMED, CANCELLED
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    event: Mapped["Event"] = relationship(back_populates="signups")
    user: Mapped["User"] = relationship()


class Badge(Base):
    """A badge template an NGO can award to volunteers."""

    __tablename__ = "badges"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    ngo_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("ngos.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_url: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    criteria: Mapped[str] = mapped_column(Text, nullable=False, default="")


class EarnedBadge(Base):
    """A badge awarded to a user. One award per (user, badge)."""

    __tablename__ = "earned_badges"
    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="uq_earned_badges_user_badge"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    badge_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("badges.id", ondelete="CASCADE"), nullable=False
    )
    awarded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )


class Branch(Base):
    """A physical office of an NGO."""

    __tablename__ = "branches"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    ngo_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("ngos.id", ondelete="CASCADE"), nullable=False
    )
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)


# ══════════════════════════════════════════════════════════════
# Audit log
# ══════════════════════════════════════════════════════════════


class AuditEvent(Base):
    """Append-only audit trail of security-relevant state changes.

    stream_id examples: "user:<uuid>", "ngo:<uuid>", "branch:<uuid>"
    type examples: "session.rotated", "ngo.created", "branch.deleted"

    data never holds raw tokens or password hashes.
    """

    __tablename__ = "audit_events"
    __table_args__ = (
        Index("idx_audit_events_stream", "stream_id", "id"),
        Index("idx_audit_events_type", "type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    stream_id: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    meta: Mapped[dict] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )  # actor_id, request_id
    # Python attr is "meta" because "metadata" is reserved by SQLAlchemy.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
