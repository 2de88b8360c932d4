from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leavepoint.config import get_settings
from leavepoint.models.audit import LeaveAuditEntry
from leavepoint.models.base import as_utc
from leavepoint.schemas.request import AuditEntryResponse

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from leavepoint.models.enums import AuditAction

logger = logging.getLogger(__name__)

_TICK = timedelta(microseconds=1)


def dedup_bucket(timestamp: datetime, window_seconds: int | None = None) -> int:
    """Time bucket used to collapse retried appends of the same action."""
    window = window_seconds or get_settings().audit_dedup_window_seconds
    return int(as_utc(timestamp).timestamp() // max(window, 1))


def build_audit_entry_response(entry: LeaveAuditEntry) -> AuditEntryResponse:
    """Map an audit entry model to its response schema."""
    return AuditEntryResponse(
        sequence=entry.sequence,
        action=entry.action,
        actor=entry.actor,
        note=entry.note,
        timestamp=entry.timestamp,
    )


async def history(session: AsyncSession, request_id: uuid.UUID) -> list[LeaveAuditEntry]:
    """Entries of one request in the order they were appended."""
    result = await session.execute(
        select(LeaveAuditEntry)
        .where(col(LeaveAuditEntry.request_id) == request_id)
        .order_by(col(LeaveAuditEntry.sequence))
    )
    return list(result.scalars().all())


async def append(
    session: AsyncSession,
    request_id: uuid.UUID,
    action: AuditAction,
    actor: str,
    note: str | None = None,
    at: datetime | None = None,
) -> LeaveAuditEntry:
    """Append an entry within the caller's transaction.

    Idempotent per (request, action, time bucket): a retried append returns
    the entry already written. Timestamps are strictly increasing within a
    request.
    """
    timestamp = as_utc(at or datetime.now(UTC))
    bucket = dedup_bucket(timestamp)

    entries = await history(session, request_id)
    for existing in entries:
        if existing.action == action.value and existing.dedup_bucket == bucket:
            logger.info("Audit entry %s for request %s already recorded", action.value, request_id)
            return existing

    if entries:
        last_timestamp = as_utc(entries[-1].timestamp)
        if timestamp <= last_timestamp:
            timestamp = last_timestamp + _TICK

    entry = LeaveAuditEntry(
        request_id=request_id,
        sequence=len(entries) + 1,
        action=action.value,
        actor=actor,
        note=note,
        timestamp=timestamp,
        dedup_bucket=bucket,
    )
    session.add(entry)
    await session.flush()
    return entry
