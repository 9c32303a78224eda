"""Auth API tests: register, login, refresh rotation, logout, /me.

Covers:
1. Registration + duplicate prevention + validation
2. Login (generic 401 for every failure, no lockout)
3. Cookie attributes and paths
4. Refresh rotation and replay rejection
5. Logout idempotence
"""

import uuid

import pytest
from sqlalchemy import select

from conftest import PASSWORD, register, unique_email, use_cookies
from volunflow.auth.cookies import ACCESS_COOKIE, REFRESH_COOKIE
from volunflow.db.models import AuditEvent, User


def _set_cookie_headers(response) -> dict[str, str]:
    """Cookie name → its attributes only (lowercased, value stripped)."""
    headers = {}
    for value in response.headers.get_list("set-cookie"):
        name, _, rest = value.partition("=")
        headers[name] = "; ".join(part.strip().lower() for part in rest.split(";")[1:])
    return headers


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_then_login_same_user(client):
    """Register, then log in with the same credentials: same user id."""
    r = await client.post(
        "/api/v1/auth/register",
        json={"email": "a@x.com", "password": PASSWORD, "name": "Ann"},
    )
    assert r.status_code == 201
    user = r.json()
    assert user["email"] == "a@x.com"
    assert user["role"] == "VOLUNTEER"
    assert user["authProvider"] == "EMAIL"
    assert ACCESS_COOKIE in r.cookies
    assert REFRESH_COOKIE in r.cookies

    client.cookies.clear()
    r = await client.post("/api/v1/auth/login", json={"email": "a@x.com", "password": PASSWORD})
    assert r.status_code == 200
    assert r.json()["id"] == user["id"]
    assert ACCESS_COOKIE in r.cookies
    assert REFRESH_COOKIE in r.cookies


@pytest.mark.asyncio
async def test_register_response_is_stripped(client):
    """Neither hashes nor tokens appear in the body."""
    user, _, _ = await register(client)
    for key in ("passwordHash", "password_hash", "refreshTokenHash", "refresh_token_hash", "password"):
        assert key not in user
    assert "accessToken" not in user


@pytest.mark.asyncio
async def test_register_duplicate_email(client):
    email = unique_email("dup")
    await register(client, email=email)

    r = await client.post(
        "/api/v1/auth/register",
        json={"email": email.upper(), "name": "Other", "password": PASSWORD},
    )
    assert r.status_code == 409
    assert r.json() == {"message": "Email already in use.", "code": "CONFLICT"}


@pytest.mark.asyncio
async def test_register_short_password(client):
    r = await client.post(
        "/api/v1/auth/register",
        json={"email": unique_email(), "name": "Short", "password": "abc"},
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_register_writes_audit_entries(client, session_factory):
    user, _, _ = await register(client)
    async with session_factory() as db:
        result = await db.execute(
            select(AuditEvent.type).where(AuditEvent.stream_id == f"user:{user['id']}").order_by(AuditEvent.id)
        )
        assert list(result.scalars()) == ["user.registered", "session.issued"]


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_wrong_password_always_401(client):
    """No lockout: every wrong attempt is a 401, and the right one still works."""
    email = unique_email("brute")
    await register(client, email=email)
    client.cookies.clear()

    for _ in range(6):
        r = await client.post("/api/v1/auth/login", json={"email": email, "password": "wrong-password"})
        assert r.status_code == 401
        assert r.json() == {"message": "Invalid credentials", "code": "UNAUTHENTICATED"}

    r = await client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_login_unknown_email_same_error(client):
    r = await client.post("/api/v1/auth/login", json={"email": unique_email("nobody"), "password": PASSWORD})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_oauth_only_account_rejected(client, session_factory):
    """An account without a password cannot log in with one."""
    email = unique_email("oauth")
    async with session_factory() as db:
        db.add(User(email=email, name="Gee"))
        await db.commit()

    r = await client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_is_case_insensitive_on_email(client):
    email = unique_email("Case")
    await register(client, email=email)
    client.cookies.clear()
    r = await client.post("/api/v1/auth/login", json={"email": email.upper(), "password": PASSWORD})
    assert r.status_code == 200


# ═══════════════════════════════════════════════════════════
# Cookies
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_session_cookie_attributes(client):
    client.cookies.clear()
    r = await client.post(
        "/api/v1/auth/register",
        json={"email": unique_email(), "name": "Ann", "password": PASSWORD},
    )
    cookies = _set_cookie_headers(r)

    access = cookies[ACCESS_COOKIE].split("; ")
    assert "httponly" in access
    assert "samesite=strict" in access
    assert "path=/" in access
    assert "max-age=86400" in access

    refresh = cookies[REFRESH_COOKIE].split("; ")
    assert "httponly" in refresh
    assert "samesite=strict" in refresh
    assert "path=/api/v1/auth/refresh_token" in refresh
    assert "max-age=604800" in refresh

    # Development settings: not Secure
    assert "secure" not in access
    assert "secure" not in refresh


@pytest.mark.asyncio
async def test_auth_responses_not_cached(client):
    r = await client.post("/api/v1/auth/login", json={"email": unique_email(), "password": PASSWORD})
    assert r.headers["Cache-Control"] == "no-store"


# ═══════════════════════════════════════════════════════════
# Refresh
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_refresh_rotates_and_rejects_replay(client):
    """login → R1 → refresh → R2 ≠ R1 → replay R1 → 403."""
    email = unique_email("rot")
    await register(client, email=email)
    client.cookies.clear()
    r = await client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    r1 = r.cookies[REFRESH_COOKIE]

    use_cookies(client, refresh=r1)
    r = await client.post("/api/v1/auth/refresh_token")
    assert r.status_code == 200
    assert r.json() == {"message": "Token refreshed"}
    r2 = r.cookies[REFRESH_COOKIE]
    assert r2 != r1
    assert ACCESS_COOKIE in r.cookies

    use_cookies(client, refresh=r1)
    r = await client.post("/api/v1/auth/refresh_token")
    assert r.status_code == 403
    assert r.json() == {"message": "Invalid or expired token", "code": "FORBIDDEN"}
    # Rejection clears both cookies on the client.
    cleared = _set_cookie_headers(r)
    assert 'max-age=0' in cleared[ACCESS_COOKIE]
    assert "path=/api/v1/auth/refresh_token" in cleared[REFRESH_COOKIE]

    # The legitimate holder of R2 is not logged out by the replay.
    use_cookies(client, refresh=r2)
    r = await client.post("/api/v1/auth/refresh_token")
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_refresh_without_cookie_is_401(client):
    client.cookies.clear()
    r = await client.post("/api/v1/auth/refresh_token")
    assert r.status_code == 401
    assert r.json()["code"] == "UNAUTHENTICATED"


@pytest.mark.asyncio
async def test_refresh_with_garbage_cookie_is_403(client):
    use_cookies(client, refresh="not-a-jwt")
    r = await client.post("/api/v1/auth/refresh_token")
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_access_token_not_accepted_as_refresh(client):
    _, access, _ = await register(client)
    use_cookies(client, refresh=access)
    r = await client.post("/api/v1/auth/refresh_token")
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_second_login_supersedes_first_session(client):
    """One live refresh token per user: a new login invalidates the old one."""
    email = unique_email("multi")
    _, _, first_refresh = await register(client, email=email)
    client.cookies.clear()
    await client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})

    use_cookies(client, refresh=first_refresh)
    r = await client.post("/api/v1/auth/refresh_token")
    assert r.status_code == 403


# ═══════════════════════════════════════════════════════════
# Logout
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_logout_without_cookies_is_200(client):
    client.cookies.clear()
    r = await client.post("/api/v1/auth/logout")
    assert r.status_code == 200
    assert r.json() == {"message": "Logged out"}


@pytest.mark.asyncio
async def test_logout_twice_then_refresh_fails(client, session_factory):
    user, access, refresh = await register(client)

    use_cookies(client, access=access)
    r = await client.post("/api/v1/auth/logout")
    assert r.status_code == 200
    cleared = _set_cookie_headers(r)
    assert ACCESS_COOKIE in cleared and REFRESH_COOKIE in cleared

    use_cookies(client, access=access)
    r = await client.post("/api/v1/auth/logout")
    assert r.status_code == 200

    async with session_factory() as db:
        stored = await db.get(User, uuid.UUID(user["id"]))
        assert stored.refresh_token_hash is None

    use_cookies(client, refresh=refresh)
    r = await client.post("/api/v1/auth/refresh_token")
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_logout_with_refresh_cookie_revokes(client):
    _, _, refresh = await register(client)
    use_cookies(client, refresh=refresh)
    r = await client.post("/api/v1/auth/logout")
    assert r.status_code == 200

    use_cookies(client, refresh=refresh)
    r = await client.post("/api/v1/auth/refresh_token")
    assert r.status_code == 403


# ═══════════════════════════════════════════════════════════
# /me
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_me_with_access_cookie(client):
    user, access, _ = await register(client, name="Ann")
    use_cookies(client, access=access)
    r = await client.get("/api/v1/auth/me")
    assert r.status_code == 200
    assert r.json()["id"] == user["id"]
    assert r.json()["name"] == "Ann"


@pytest.mark.asyncio
async def test_me_anonymous_is_401(client):
    client.cookies.clear()
    r = await client.get("/api/v1/auth/me")
    assert r.status_code == 401
    assert r.json() == {"message": "You must be logged in.", "code": "UNAUTHENTICATED"}
