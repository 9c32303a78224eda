"""Authorization guard tests — role checks, ownership, locked loads."""

import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy.dialects import postgresql

from volunflow.auth.errors import Forbidden, Unauthenticated
from volunflow.auth.guard import (
    authorize_owned,
    require_ngo_admin,
    require_ownership,
    require_role,
)
from volunflow.db.models import AuthProvider, Branch, Ngo, UserRole
from volunflow.schemas.auth import UserRead


def _identity(role=UserRole.VOLUNTEER, ngo_id=None) -> UserRead:
    return UserRead(
        id=uuid.uuid4(),
        email="guard@example.com",
        name="Guard",
        auth_provider=AuthProvider.EMAIL,
        role=role,
        admin_of_ngo_id=ngo_id,
        created_at=datetime.now(timezone.utc),
    )


async def _ngo_with_branch(db, name: str) -> tuple[Ngo, Branch]:
    ngo = Ngo(name=name, slug=name.lower(), contact_email=f"{name.lower()}@example.com")
    db.add(ngo)
    await db.flush()
    branch = Branch(ngo_id=ngo.id, address="1 Main St", city="Lagos", latitude=6.5, longitude=3.4)
    db.add(branch)
    await db.commit()
    return ngo, branch


# ─── Pure checks ────────────────────────────────────────


def test_require_role_anonymous_is_unauthenticated():
    with pytest.raises(Unauthenticated):
        require_role(None, UserRole.NGO_ADMIN)


def test_require_role_volunteer_is_forbidden():
    with pytest.raises(Forbidden, match="NGO admins only"):
        require_role(_identity(), UserRole.NGO_ADMIN)


def test_require_role_super_admin_is_not_ngo_admin():
    """Roles are matched exactly; there is no hierarchy."""
    with pytest.raises(Forbidden):
        require_role(_identity(UserRole.SUPER_ADMIN), UserRole.NGO_ADMIN)


def test_require_role_message_names_required_role():
    with pytest.raises(Forbidden, match="restricted to super admins only"):
        require_role(_identity(UserRole.NGO_ADMIN, uuid.uuid4()), UserRole.SUPER_ADMIN)
    with pytest.raises(Forbidden, match="restricted to volunteers only"):
        require_role(_identity(UserRole.SUPER_ADMIN), UserRole.VOLUNTEER)


def test_require_ngo_admin_returns_tenant():
    ngo_id = uuid.uuid4()
    assert require_ngo_admin(_identity(UserRole.NGO_ADMIN, ngo_id)) == ngo_id


def test_require_ngo_admin_without_tenant_is_forbidden():
    with pytest.raises(Forbidden):
        require_ngo_admin(_identity(UserRole.NGO_ADMIN, None))


def test_require_ownership_other_tenant():
    with pytest.raises(Forbidden, match="Resource not found or access denied."):
        require_ownership(_identity(UserRole.NGO_ADMIN, uuid.uuid4()), uuid.uuid4())


def test_require_ownership_same_tenant():
    ngo_id = uuid.uuid4()
    require_ownership(_identity(UserRole.NGO_ADMIN, ngo_id), ngo_id)


# ─── authorize_owned ────────────────────────────────────


@pytest.mark.asyncio
async def test_authorize_owned_returns_row_for_owner(db_session):
    ngo, branch = await _ngo_with_branch(db_session, "Alpha")
    row = await authorize_owned(db_session, _identity(UserRole.NGO_ADMIN, ngo.id), Branch, branch.id)
    assert row.id == branch.id


@pytest.mark.asyncio
async def test_authorize_owned_cross_tenant_forbidden(db_session):
    _, branch = await _ngo_with_branch(db_session, "Alpha")
    other, _ = await _ngo_with_branch(db_session, "Beta")
    with pytest.raises(Forbidden):
        await authorize_owned(db_session, _identity(UserRole.NGO_ADMIN, other.id), Branch, branch.id)


@pytest.mark.asyncio
async def test_authorize_owned_missing_row_looks_like_cross_tenant(db_session):
    ngo, _ = await _ngo_with_branch(db_session, "Alpha")
    with pytest.raises(Forbidden) as missing:
        await authorize_owned(db_session, _identity(UserRole.NGO_ADMIN, ngo.id), Branch, uuid.uuid4())
    assert missing.value.message == "Resource not found or access denied."


@pytest.mark.asyncio
async def test_authorize_owned_checks_role_before_lookup(db_session):
    """A volunteer is refused on role alone, whatever the id."""
    with pytest.raises(Forbidden, match="NGO admins only"):
        await authorize_owned(db_session, _identity(), Branch, uuid.uuid4())


@pytest.mark.asyncio
async def test_authorize_owned_locks_only_for_writes(db_session, monkeypatch):
    ngo, branch = await _ngo_with_branch(db_session, "Alpha")
    admin = _identity(UserRole.NGO_ADMIN, ngo.id)

    statements = []
    execute = db_session.execute

    async def recording_execute(statement, *args, **kwargs):
        statements.append(str(statement.compile(dialect=postgresql.dialect())))
        return await execute(statement, *args, **kwargs)

    monkeypatch.setattr(db_session, "execute", recording_execute)

    await authorize_owned(db_session, admin, Branch, branch.id)
    row = await authorize_owned(db_session, admin, Branch, branch.id, for_update=False)

    assert row.id == branch.id
    assert statements[0].endswith("FOR UPDATE")
    assert "FOR UPDATE" not in statements[1]


@pytest.mark.asyncio
async def test_read_only_load_keeps_tenant_checks(db_session):
    _, branch = await _ngo_with_branch(db_session, "Alpha")
    other, _ = await _ngo_with_branch(db_session, "Beta")
    with pytest.raises(Forbidden, match="Resource not found or access denied."):
        await authorize_owned(
            db_session, _identity(UserRole.NGO_ADMIN, other.id), Branch, branch.id, for_update=False
        )
