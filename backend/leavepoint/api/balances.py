# ruff: noqa: B008, TC001
from __future__ import annotations

from fastapi import APIRouter

from leavepoint.api.deps import ActorDep, AdminDep
from leavepoint.db import SessionDep
from leavepoint.schemas.balance import BalanceResponse, SetAllowanceRequest
from leavepoint.services import balance as balance_service

balances_router = APIRouter(prefix="/balances", tags=["balances"])


@balances_router.get("/{team_member}", response_model=BalanceResponse)
async def get_balance(
    team_member: str,
    session: SessionDep,
    actor: ActorDep,
) -> BalanceResponse:
    """Current PTO balance of a team member."""
    return await balance_service.get_balance_response(session, team_member)


@balances_router.put("/{team_member}", response_model=BalanceResponse)
async def set_annual_allowance(
    team_member: str,
    payload: SetAllowanceRequest,
    session: SessionDep,
    actor: AdminDep,
) -> BalanceResponse:
    """Set a team member's annual allowance (admin only)."""
    return await balance_service.set_annual_allowance(session, team_member, payload.annual_pto)
