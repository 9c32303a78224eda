"""Authorization guard — role and tenant-ownership checks.

Every mutation on an NGO-owned resource (Event, Badge, Branch, and any
future model with an ngo_id column) goes through authorize_owned:

    require_role(identity, NGO_ADMIN)     # no I/O, fails fast
    row = SELECT ... FOR UPDATE           # one lookup, locked until commit
    require_ownership(identity, row.ngo_id)

The row lock is held by the caller's transaction, so the ownership fact
cannot change between the check and the write. Read-only callers (attendee
lists) pass for_update=False and get the same checks without a lock.

A missing row and a row owned by another tenant produce the same
Forbidden error: probing ids from outside a tenant reveals nothing.
"""

import uuid
from typing import Optional, Protocol, TypeVar

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from volunflow.auth.context import ContextUser
from volunflow.auth.errors import Forbidden, Unauthenticated
from volunflow.db.models import UserRole

logger = structlog.get_logger()


class OwnedResource(Protocol):
    id: uuid.UUID
    ngo_id: uuid.UUID


R = TypeVar("R", bound=OwnedResource)

_ROLE_AUDIENCE = {
    UserRole.VOLUNTEER: "volunteers",
    UserRole.NGO_ADMIN: "NGO admins",
    UserRole.SUPER_ADMIN: "super admins",
}


def require_user(identity: Optional[ContextUser]) -> ContextUser:
    if identity is None:
        raise Unauthenticated()
    return identity


def require_role(identity: Optional[ContextUser], role: UserRole) -> ContextUser:
    identity = require_user(identity)
    if identity.role != role:
        logger.info(
            "auth.role_denied",
            user_id=str(identity.id),
            required=role.value,
            actual=identity.role.value,
        )
        raise Forbidden(f"This action is restricted to {_ROLE_AUDIENCE[role]} only.")
    return identity


def require_ngo_admin(identity: Optional[ContextUser]) -> uuid.UUID:
    """Role check for NGO admins. Returns the admin's tenant id."""
    identity = require_role(identity, UserRole.NGO_ADMIN)
    if identity.admin_of_ngo_id is None:
        raise Forbidden("This action is restricted to NGO admins only.")
    return identity.admin_of_ngo_id


def require_ownership(identity: ContextUser, resource_ngo_id: uuid.UUID) -> None:
    if identity.admin_of_ngo_id is None or identity.admin_of_ngo_id != resource_ngo_id:
        logger.warning(
            "auth.cross_tenant_denied",
            user_id=str(identity.id),
            resource_ngo_id=str(resource_ngo_id),
        )
        raise Forbidden("Resource not found or access denied.")


async def authorize_owned(
    db: AsyncSession,
    identity: Optional[ContextUser],
    model: type[R],
    resource_id: uuid.UUID,
    for_update: bool = True,
) -> R:
    """Role check, load, ownership check. Returns the row.

    The load is SELECT ... FOR UPDATE unless for_update=False (read-only callers).
    """
    require_ngo_admin(identity)

    query = select(model).where(model.id == resource_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    resource = result.scalars().first()
    if resource is None:
        logger.info(
            "auth.owned_resource_missing",
            resource=model.__name__,
            resource_id=str(resource_id),
        )
        raise Forbidden("Resource not found or access denied.")

    require_ownership(identity, resource.ngo_id)
    return resource
