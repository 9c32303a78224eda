"""VolunFlow admin CLI — operator tasks that talk to the database directly.

Usage:
    volunflow revoke-session ann@example.com     # Force logout everywhere
    volunflow create-admin root@example.com "Root"   # Bootstrap a SUPER_ADMIN
    volunflow audit user:<uuid> --limit 20        # Inspect an audit stream
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import sys

import click

from volunflow.auth.errors import Conflict


def _run(coro):
    """Run an async coroutine from a synchronous click handler.

    Offloads to a thread when a loop is already running (CliRunner inside
    an async test).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _session_factory():
    from volunflow.db.engine import async_session_factory

    return async_session_factory


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "-"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def _revoke_session(email: str) -> bool:
    from volunflow.auth.store import CredentialStore
    from volunflow.auth.tokens import TokenService

    async with _session_factory()() as db:
        user = await CredentialStore(db).get_by_email(email)
        if user is None:
            return False
        await TokenService(db).revoke(user.id)
        return True


async def _create_admin(email: str, name: str, password: str) -> str:
    from volunflow.auth.password import hash_password
    from volunflow.auth.store import CredentialStore
    from volunflow.audit.store import AuditStore
    from volunflow.audit.types import USER_REGISTERED
    from volunflow.db.models import AuthProvider, UserRole

    async with _session_factory()() as db:
        store = CredentialStore(db)
        if await store.get_by_email(email):
            raise Conflict("Email already in use.")
        password_hash = await asyncio.to_thread(hash_password, password)
        user = await store.create_user(
            email=email,
            name=name,
            password_hash=password_hash,
            auth_provider=AuthProvider.EMAIL,
            role=UserRole.SUPER_ADMIN,
        )
        await AuditStore(db).append(
            stream_id=f"user:{user.id}",
            event_type=USER_REGISTERED,
            data={"provider": AuthProvider.EMAIL.value, "role": UserRole.SUPER_ADMIN.value},
            metadata={"actor": "cli"},
        )
        await db.commit()
        return str(user.id)


async def _read_audit(stream_id: str, after_id: int, limit: int) -> list[dict]:
    from volunflow.audit.store import AuditStore

    async with _session_factory()() as db:
        entries = await AuditStore(db).read_stream(stream_id, after_id=after_id, limit=limit)
        return [
            {
                "id": e.id,
                "type": e.type,
                "created_at": e.created_at.isoformat(timespec="seconds") if e.created_at else "",
                "data": e.data,
                "metadata": e.meta,
            }
            for e in entries
        ]


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="volunflow")
def cli():
    """VolunFlow — administrative commands."""


@cli.command("revoke-session")
@click.argument("email")
def revoke_session(email: str):
    """Invalidate EMAIL's refresh token, forcing a new login."""
    if not _run(_revoke_session(email)):
        click.secho(f"No user with email {email}", fg="red", err=True)
        sys.exit(1)
    click.secho(f"Session revoked for {email}", fg="green")


@cli.command("create-admin")
@click.argument("email")
@click.argument("name")
@click.password_option(help="Password for the new account (prompted if omitted).")
def create_admin(email: str, name: str, password: str):
    """Create a SUPER_ADMIN account."""
    if len(password) < 8:
        click.secho("Password must be at least 8 characters", fg="red", err=True)
        sys.exit(1)
    try:
        user_id = _run(_create_admin(email, name, password))
    except Conflict as e:
        click.secho(f"Error: {e.message}", fg="red", err=True)
        sys.exit(1)
    click.secho(f"Created super admin {email} ({user_id})", fg="green")


@cli.command("audit")
@click.argument("stream_id")
@click.option("--after", "after_id", default=0, show_default=True, help="Only entries with id greater than this")
@click.option("--limit", default=100, show_default=True, type=click.IntRange(1, 1000))
@click.option("--json", "as_json", is_flag=True, help="Output raw JSON")
def audit(stream_id: str, after_id: int, limit: int, as_json: bool):
    """Show the audit trail for STREAM_ID (e.g. user:<uuid>, ngo:<uuid>)."""
    entries = _run(_read_audit(stream_id, after_id, limit))
    if as_json:
        click.echo(_pretty_json(entries))
        return
    if not entries:
        click.echo(f"No audit entries for {stream_id}")
        return
    rows = [{**e, "data": json.dumps(e["data"], default=str)} for e in entries]
    _print_table(
        rows,
        [("ID", "id", 6), ("When", "created_at", 25), ("Type", "type", 26), ("Data", "data", 60)],
    )


def main():
    cli()


if __name__ == "__main__":
    main()
