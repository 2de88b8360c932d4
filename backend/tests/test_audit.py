"""Tests for the append-only audit trail."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING

from leavepoint.models.base import as_utc
from leavepoint.models.enums import AuditAction
from leavepoint.models.request import LeaveRequest
from leavepoint.services import audit

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def _create_request(session: AsyncSession) -> LeaveRequest:
    request = LeaveRequest(
        team_member="Jane Doe",
        leave_type="annual",
        start_date=date(2025, 6, 2),
        end_date=date(2025, 6, 6),
        days=5,
        submitted_by="jane.doe@zimworx.org",
        submitted_at=datetime.now(UTC),
    )
    session.add(request)
    await session.flush()
    return request


def test_dedup_bucket_window() -> None:
    at = datetime(2025, 6, 2, 9, 0, 10, tzinfo=UTC)
    assert audit.dedup_bucket(at, 60) == audit.dedup_bucket(at + timedelta(seconds=30), 60)
    assert audit.dedup_bucket(at, 60) != audit.dedup_bucket(at + timedelta(seconds=60), 60)


def test_dedup_bucket_treats_naive_as_utc() -> None:
    naive = datetime(2025, 6, 2, 9, 0, 0)
    assert audit.dedup_bucket(naive, 60) == audit.dedup_bucket(naive.replace(tzinfo=UTC), 60)


async def test_append_assigns_sequence(db_session: AsyncSession) -> None:
    request = await _create_request(db_session)
    first = await audit.append(db_session, request.id, AuditAction.SUBMITTED, "jane.doe@zimworx.org")
    second = await audit.append(db_session, request.id, AuditAction.CSP_APPROVED, "csp@zimworx.com", "ok")

    assert (first.sequence, second.sequence) == (1, 2)
    entries = await audit.history(db_session, request.id)
    assert [e.action for e in entries] == ["submitted", "csp-approved"]
    assert entries[1].note == "ok"


async def test_append_is_idempotent_within_window(db_session: AsyncSession) -> None:
    request = await _create_request(db_session)
    at = datetime(2025, 6, 2, 9, 0, 0, tzinfo=UTC)
    first = await audit.append(db_session, request.id, AuditAction.SUBMITTED, "jane", at=at)
    retry = await audit.append(db_session, request.id, AuditAction.SUBMITTED, "jane", at=at + timedelta(seconds=5))

    assert retry.id == first.id
    assert len(await audit.history(db_session, request.id)) == 1


async def test_timestamps_strictly_increase(db_session: AsyncSession) -> None:
    request = await _create_request(db_session)
    at = datetime(2025, 6, 2, 9, 0, 0, tzinfo=UTC)
    await audit.append(db_session, request.id, AuditAction.SUBMITTED, "jane", at=at)
    second = await audit.append(db_session, request.id, AuditAction.CSP_APPROVED, "csp", at=at)
    third = await audit.append(db_session, request.id, AuditAction.CLIENT_APPROVED, "csp", at=at - timedelta(hours=1))

    entries = await audit.history(db_session, request.id)
    timestamps = [as_utc(e.timestamp) for e in entries]
    assert timestamps == sorted(timestamps)
    assert len(set(timestamps)) == 3
    assert as_utc(second.timestamp) > at
    assert as_utc(third.timestamp) > as_utc(second.timestamp)


async def test_history_of_unknown_request_is_empty(db_session: AsyncSession) -> None:
    request = await _create_request(db_session)
    await audit.append(db_session, request.id, AuditAction.SUBMITTED, "jane")
    other = await _create_request(db_session)
    assert await audit.history(db_session, other.id) == []
