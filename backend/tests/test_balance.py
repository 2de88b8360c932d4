"""Tests for day counting, balance checks and PTO consumption."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import select
from sqlmodel import col

from leavepoint.config import get_settings
from leavepoint.exceptions import ValidationError
from leavepoint.models.enums import DayPolicy, RequestStatus
from leavepoint.models.ledger import PTOUsageEntry
from leavepoint.models.request import LeaveRequest
from leavepoint.schemas.balance import PTOBalance
from leavepoint.services.balance import (
    check_balance,
    compute_days,
    consume_balance,
    get_balance,
    leave_policy_warnings,
    set_annual_allowance,
    usage_idempotency_key,
)

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

ADMIN_HEADERS = {"X-Actor-Email": "admin@zimworx.org", "X-Role": "admin"}
CSP_HEADERS = {"X-Actor-Email": "csp@zimworx.com", "X-Role": "csp"}


# ---------------------------------------------------------------------------
# Day counting
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("start", "end", "business", "calendar"),
    [
        (date(2025, 6, 2), date(2025, 6, 6), 5, 5),  # Mon-Fri
        (date(2025, 6, 2), date(2025, 6, 8), 5, 7),  # Mon-Sun
        (date(2025, 6, 7), date(2025, 6, 8), 0, 2),  # weekend only
        (date(2025, 6, 6), date(2025, 6, 9), 2, 4),  # Fri-Mon
        (date(2025, 6, 2), date(2025, 6, 15), 10, 14),
        (date(2025, 6, 4), date(2025, 6, 4), 1, 1),
    ],
)
def test_compute_days(start: date, end: date, business: int, calendar: int) -> None:
    assert compute_days(start, end, DayPolicy.BUSINESS_DAYS) == business
    assert compute_days(start, end, DayPolicy.CALENDAR_DAYS) == calendar


def test_compute_days_accepts_policy_string() -> None:
    assert compute_days(date(2025, 6, 2), date(2025, 6, 8), "calendar-days") == 7


def test_compute_days_inverted_range() -> None:
    with pytest.raises(ValidationError) as exc_info:
        compute_days(date(2025, 6, 6), date(2025, 6, 2), DayPolicy.BUSINESS_DAYS)
    assert "end_date" in exc_info.value.errors


# ---------------------------------------------------------------------------
# Balance checks
# ---------------------------------------------------------------------------


def test_remaining_never_negative() -> None:
    assert PTOBalance(annual_pto=5, used_pto=8).remaining_pto == 0


def test_check_balance_sufficient() -> None:
    result = check_balance(PTOBalance(annual_pto=12, used_pto=2), 5)
    assert result.sufficient is True
    assert result.shortfall == 0
    assert result.balance.remaining_pto == 10


def test_check_balance_insufficient_is_advisory() -> None:
    result = check_balance(PTOBalance(annual_pto=12, used_pto=10), 5)
    assert result.sufficient is False
    assert result.shortfall == 3


def test_check_balance_blocking_raises() -> None:
    with pytest.raises(ValidationError) as exc_info:
        check_balance(PTOBalance(annual_pto=12, used_pto=10), 5, blocking=True)
    assert "days" in exc_info.value.errors


def test_policy_warnings_short_notice_and_long_leave() -> None:
    warnings = leave_policy_warnings(date(2025, 6, 2), 20, date(2025, 6, 1), get_settings())
    assert len(warnings) == 2
    assert "notice" in warnings[0]
    assert "consecutive" in warnings[1]


def test_policy_warnings_none_for_regular_request() -> None:
    assert leave_policy_warnings(date(2025, 6, 2), 5, date(2025, 5, 1), get_settings()) == []


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


async def _create_request(session: AsyncSession, days: int = 5) -> LeaveRequest:
    request = LeaveRequest(
        team_member="Jane Doe",
        leave_type="annual",
        start_date=date(2025, 6, 2),
        end_date=date(2025, 6, 6),
        days=days,
        status=RequestStatus.CLIENT_APPROVED.value,
        submitted_by="jane.doe@zimworx.org",
        submitted_at=datetime.now(UTC),
    )
    session.add(request)
    await session.flush()
    return request


async def test_unknown_member_gets_default_allowance(db_session: AsyncSession) -> None:
    balance = await get_balance(db_session, "Nobody Yet")
    assert balance.annual_pto == get_settings().default_annual_pto
    assert balance.used_pto == 0


async def test_set_annual_allowance(db_session: AsyncSession) -> None:
    result = await set_annual_allowance(db_session, "Jane Doe", 20)
    assert result.annual_pto == 20
    assert result.remaining_pto == 20
    balance = await get_balance(db_session, "jane doe")
    assert balance.annual_pto == 20


async def test_consume_balance_once(db_session: AsyncSession) -> None:
    request = await _create_request(db_session, days=5)

    assert await consume_balance(db_session, request, RequestStatus.SENT_TO_PAYROLL) is True
    assert await consume_balance(db_session, request, RequestStatus.SENT_TO_PAYROLL) is False

    balance = await get_balance(db_session, "Jane Doe")
    assert balance.used_pto == 5
    assert balance.remaining_pto == 7

    result = await db_session.execute(
        select(PTOUsageEntry).where(col(PTOUsageEntry.request_id) == request.id)
    )
    entries = list(result.scalars().all())
    assert len(entries) == 1
    assert entries[0].idempotency_key == usage_idempotency_key(request.id, RequestStatus.SENT_TO_PAYROLL)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


async def test_get_balance_endpoint(async_client: AsyncClient) -> None:
    resp = await async_client.get("/balances/Jane Doe", headers=CSP_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["annual_pto"] == 12
    assert data["remaining_pto"] == 12
    assert data["updated_at"] is None


async def test_set_allowance_endpoint(async_client: AsyncClient) -> None:
    resp = await async_client.put("/balances/Jane Doe", json={"annual_pto": 15}, headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["annual_pto"] == 15

    resp = await async_client.get("/balances/Jane Doe", headers=CSP_HEADERS)
    assert resp.json()["remaining_pto"] == 15


async def test_set_allowance_requires_admin(async_client: AsyncClient) -> None:
    resp = await async_client.put("/balances/Jane Doe", json={"annual_pto": 15}, headers=CSP_HEADERS)
    assert resp.status_code == 403


async def test_balance_requires_actor_headers(async_client: AsyncClient) -> None:
    resp = await async_client.get("/balances/Jane Doe")
    assert resp.status_code == 401
