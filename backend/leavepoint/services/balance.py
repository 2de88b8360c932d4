from __future__ import annotations

import logging
import uuid
from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leavepoint.config import get_settings
from leavepoint.exceptions import ValidationError
from leavepoint.models.balance import PTOBalanceRecord
from leavepoint.models.enums import DayPolicy, RequestStatus
from leavepoint.models.ledger import PTOUsageEntry
from leavepoint.schemas.balance import BalanceCheck, BalanceResponse, PTOBalance

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leavepoint.config import Settings
    from leavepoint.models.request import LeaveRequest

logger = logging.getLogger(__name__)

_WEEKEND = (5, 6)


# ---------------------------------------------------------------------------
# Day counting and balance checks
# ---------------------------------------------------------------------------


def compute_days(start: date, end: date, policy: DayPolicy | str) -> int:
    """Count the days of an inclusive date range under the given policy.

    calendar-days counts every day; business-days skips Saturday and Sunday.
    """
    if end < start:
        raise ValidationError({"end_date": ["end_date must be on or after start_date"]})

    total = (end - start).days + 1
    if DayPolicy(policy) is DayPolicy.CALENDAR_DAYS:
        return total

    full_weeks, remainder = divmod(total, 7)
    days = full_weeks * 5
    tail_start = start + timedelta(days=full_weeks * 7)
    for offset in range(remainder):
        if (tail_start + timedelta(days=offset)).weekday() not in _WEEKEND:
            days += 1
    return days


def check_balance(balance: PTOBalance, days: int, *, blocking: bool = False) -> BalanceCheck:
    """Compare a day count with the remaining balance.

    The result is advisory: insufficiency is reported through ``sufficient``
    and only raises when ``blocking`` is set.
    """
    shortfall = max(days - balance.remaining_pto, 0)
    result = BalanceCheck(
        sufficient=shortfall == 0,
        requested_days=days,
        shortfall=shortfall,
        balance=balance,
    )
    if blocking and not result.sufficient:
        raise ValidationError(
            {
                "days": [
                    f"Insufficient PTO balance. Requested: {days} days, Available: {balance.remaining_pto} days."
                ]
            }
        )
    return result


def leave_policy_warnings(start: date, days: int, today: date, settings: Settings) -> list[str]:
    """Advisory notice-period and length findings for a submission."""
    warnings: list[str] = []
    notice_days = (start - today).days
    if notice_days < settings.min_notice_days:
        warnings.append(
            f"Minimum {settings.min_notice_days} days notice expected. Request is {notice_days} days in advance."
        )
    if days > settings.max_consecutive_days:
        warnings.append(f"Maximum {settings.max_consecutive_days} consecutive days expected. Request is {days} days.")
    return warnings


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def _member_key(team_member: str) -> str:
    return team_member.strip().casefold()


def usage_idempotency_key(request_id: uuid.UUID, target: RequestStatus) -> str:
    """Key that makes consumption happen once per request and target state."""
    return f"{request_id}:{target.value}"


def _to_balance(record: PTOBalanceRecord) -> PTOBalance:
    return PTOBalance(annual_pto=record.annual_pto, used_pto=record.used_pto)


async def _get_balance_record(
    session: AsyncSession,
    team_member: str,
    *,
    for_update: bool = False,
) -> PTOBalanceRecord | None:
    query = select(PTOBalanceRecord).where(col(PTOBalanceRecord.team_member) == _member_key(team_member))
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def _get_or_create_balance_for_update(session: AsyncSession, team_member: str) -> PTOBalanceRecord:
    """Get the balance row with a FOR UPDATE lock, creating it with the default allowance if absent."""
    record = await _get_balance_record(session, team_member, for_update=True)
    if record is None:
        record = PTOBalanceRecord(
            team_member=_member_key(team_member),
            annual_pto=get_settings().default_annual_pto,
            used_pto=0,
            version=1,
        )
        session.add(record)
        await session.flush()
    return record


async def get_balance(session: AsyncSession, team_member: str) -> PTOBalance:
    """Current balance for a team member; unknown members get the default allowance."""
    record = await _get_balance_record(session, team_member)
    if record is None:
        return PTOBalance(annual_pto=get_settings().default_annual_pto, used_pto=0)
    return _to_balance(record)


async def get_balance_response(session: AsyncSession, team_member: str) -> BalanceResponse:
    record = await _get_balance_record(session, team_member)
    balance = _to_balance(record) if record is not None else await get_balance(session, team_member)
    return BalanceResponse(
        team_member=team_member,
        annual_pto=balance.annual_pto,
        used_pto=balance.used_pto,
        remaining_pto=balance.remaining_pto,
        updated_at=record.updated_at if record is not None else None,
    )


async def set_annual_allowance(session: AsyncSession, team_member: str, annual_pto: int) -> BalanceResponse:
    """Set a team member's annual allowance (admin)."""
    record = await _get_or_create_balance_for_update(session, team_member)
    record.annual_pto = annual_pto
    record.updated_at = datetime.now(UTC)
    record.version += 1
    await session.commit()
    await session.refresh(record)
    logger.info("Annual PTO for %s set to %d days", team_member, annual_pto)
    return BalanceResponse(
        team_member=team_member,
        annual_pto=record.annual_pto,
        used_pto=record.used_pto,
        remaining_pto=_to_balance(record).remaining_pto,
        updated_at=record.updated_at,
    )


async def consume_balance(session: AsyncSession, request: LeaveRequest, target: RequestStatus) -> bool:
    """Record the request's days as used, once per (request, target state).

    Runs inside the caller's transaction. Returns False when the usage was
    already recorded.
    """
    key = usage_idempotency_key(request.id, target)
    existing = await session.execute(select(PTOUsageEntry).where(col(PTOUsageEntry.idempotency_key) == key))
    if existing.scalar_one_or_none() is not None:
        logger.info("PTO usage for request %s already recorded", request.id)
        return False

    record = await _get_or_create_balance_for_update(session, request.team_member)
    session.add(
        PTOUsageEntry(
            team_member=record.team_member,
            request_id=request.id,
            days=request.days,
            idempotency_key=key,
        )
    )
    record.used_pto += request.days
    record.updated_at = datetime.now(UTC)
    record.version += 1
    await session.flush()
    return True
