"""Audit store — append-only log of security-relevant changes.

Rows are added to the caller's session and flushed, never committed here:
an audit entry lands in the same transaction as the change it describes,
so a rolled-back write leaves no trace in the log either.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from volunflow.db.models import AuditEvent


class AuditStore:
    """Append-only audit log backed by the main database."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        stream_id: str,
        event_type: str,
        data: dict | None = None,
        metadata: dict | None = None,
    ) -> AuditEvent:
        """Append an entry to a stream. Returns the created row."""
        entry = AuditEvent(
            stream_id=stream_id,
            type=event_type,
            data=data or {},
            meta=metadata or {},
        )
        self.db.add(entry)
        await self.db.flush()  # get the auto-generated id
        return entry

    async def read_stream(
        self,
        stream_id: str,
        after_id: int = 0,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Read entries for one stream, optionally after a given position."""
        result = await self.db.execute(
            select(AuditEvent)
            .where(AuditEvent.stream_id == stream_id, AuditEvent.id > after_id)
            .order_by(AuditEvent.id)
            .limit(limit)
        )
        return list(result.scalars().all())
