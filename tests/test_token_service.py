"""TokenService tests — issue, rotate exactly once, revoke, CAS on the hash."""

import uuid

import jwt
import pytest
from sqlalchemy import select

from volunflow.auth.errors import RefreshTokenRejected, TokenError
from volunflow.auth.jwt import ACCESS, REFRESH, create_access_token, create_refresh_token, verify_token
from volunflow.auth.password import hash_refresh_token, verify_refresh_token
from volunflow.auth.store import CredentialStore
from volunflow.auth.tokens import TokenService
from volunflow.config import settings
from volunflow.db.models import AuditEvent


async def _user(db, email="tok@example.com"):
    return await CredentialStore(db).create_user(email=email, name="Tok")


async def _audit_types(db, user_id) -> list[str]:
    result = await db.execute(
        select(AuditEvent.type).where(AuditEvent.stream_id == f"user:{user_id}").order_by(AuditEvent.id)
    )
    return list(result.scalars())


# ─── JWT ────────────────────────────────────────────────


def test_access_and_refresh_use_different_secrets():
    user_id = str(uuid.uuid4())
    access = create_access_token(user_id)
    refresh = create_refresh_token(user_id)

    assert verify_token(access, ACCESS) == uuid.UUID(user_id)
    assert verify_token(refresh, REFRESH) == uuid.UUID(user_id)
    with pytest.raises(TokenError):
        verify_token(access, REFRESH)
    with pytest.raises(TokenError):
        verify_token(refresh, ACCESS)


def test_expired_token_rejected():
    token = create_access_token(str(uuid.uuid4()), expires_minutes=-1)
    with pytest.raises(TokenError, match="expired"):
        verify_token(token, ACCESS)


def test_token_with_wrong_type_claim_rejected():
    forged = jwt.encode(
        {"sub": str(uuid.uuid4()), "type": "refresh", "exp": 9999999999},
        settings.access_token_secret,
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(TokenError, match="wrong token type"):
        verify_token(forged, ACCESS)


def test_refresh_hash_covers_whole_token():
    """Tokens sharing their first 72 bytes must not verify against each other."""
    token = create_refresh_token(str(uuid.uuid4()))
    token_hash = hash_refresh_token(token)
    assert verify_refresh_token(token, token_hash)
    assert not verify_refresh_token(token[:72] + "tampered", token_hash)


# ─── Rotation ───────────────────────────────────────────


@pytest.mark.asyncio
async def test_rotate_succeeds_exactly_once(db_session):
    user = await _user(db_session)
    svc = TokenService(db_session)
    pair = await svc.issue_token_pair(user)

    rotated_user, new_pair = await svc.rotate_from_refresh_token(pair.refresh_token)
    assert rotated_user.id == user.id
    assert new_pair.refresh_token != pair.refresh_token

    with pytest.raises(RefreshTokenRejected):
        await svc.rotate_from_refresh_token(pair.refresh_token)

    # The new token is still good.
    _, third = await svc.rotate_from_refresh_token(new_pair.refresh_token)
    assert third.refresh_token != new_pair.refresh_token


@pytest.mark.asyncio
async def test_replay_is_audited(db_session):
    user = await _user(db_session)
    svc = TokenService(db_session)
    pair = await svc.issue_token_pair(user)
    await svc.rotate_from_refresh_token(pair.refresh_token)

    with pytest.raises(RefreshTokenRejected):
        await svc.rotate_from_refresh_token(pair.refresh_token)

    assert await _audit_types(db_session, user.id) == [
        "session.issued",
        "session.rotated",
        "session.refresh_rejected",
    ]


@pytest.mark.asyncio
async def test_rotate_unknown_user_rejected(db_session):
    token = create_refresh_token(str(uuid.uuid4()))
    with pytest.raises(RefreshTokenRejected):
        await TokenService(db_session).rotate_from_refresh_token(token)


@pytest.mark.asyncio
async def test_lost_cas_race_is_rejected(db_session, monkeypatch):
    """If another rotation swaps the hash first, this one fails cleanly."""
    user = await _user(db_session)
    user_id = user.id
    svc = TokenService(db_session)
    pair = await svc.issue_token_pair(user)

    async def lost_race(self, user_id, expected_hash, new_hash):
        return False

    monkeypatch.setattr(CredentialStore, "swap_refresh_hash", lost_race)
    with pytest.raises(RefreshTokenRejected):
        await svc.rotate_from_refresh_token(pair.refresh_token)

    assert (await _audit_types(db_session, user_id))[-1] == "session.refresh_rejected"


@pytest.mark.asyncio
async def test_swap_refresh_hash_is_conditional(db_session):
    user = await _user(db_session)
    store = CredentialStore(db_session)
    await store.replace_refresh_hash(user.id, "hash-1")

    assert await store.swap_refresh_hash(user.id, "hash-1", "hash-2") is True
    assert await store.swap_refresh_hash(user.id, "hash-1", "hash-3") is False

    fresh = await store.get_by_id(user.id)
    assert fresh.refresh_token_hash == "hash-2"


# ─── Revocation ─────────────────────────────────────────


@pytest.mark.asyncio
async def test_revoke_is_idempotent_and_kills_refresh(db_session):
    user = await _user(db_session)
    svc = TokenService(db_session)
    pair = await svc.issue_token_pair(user)

    await svc.revoke(user.id)
    await svc.revoke(user.id)

    fresh = await CredentialStore(db_session).get_by_id(user.id)
    assert fresh.refresh_token_hash is None
    with pytest.raises(RefreshTokenRejected):
        await svc.rotate_from_refresh_token(pair.refresh_token)


@pytest.mark.asyncio
async def test_access_token_survives_revocation(db_session):
    """Access tokens are stateless; revocation only stops refreshes."""
    user = await _user(db_session)
    svc = TokenService(db_session)
    pair = await svc.issue_token_pair(user)
    await svc.revoke(user.id)
    assert TokenService.verify_access_token(pair.access_token) == user.id
