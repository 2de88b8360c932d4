from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, computed_field


class PTOBalance(BaseModel):
    """Annual allowance, consumed days and what remains."""

    annual_pto: int
    used_pto: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def remaining_pto(self) -> int:
        return max(self.annual_pto - self.used_pto, 0)


class BalanceCheck(BaseModel):
    """Outcome of checking a day count against a balance. Advisory unless blocking."""

    sufficient: bool
    requested_days: int
    shortfall: int
    balance: PTOBalance


class BalanceResponse(BaseModel):
    """Balance of a single team member."""

    team_member: str
    annual_pto: int
    used_pto: int
    remaining_pto: int
    updated_at: datetime | None


class SetAllowanceRequest(BaseModel):
    """Request body for setting a team member's annual allowance."""

    annual_pto: int = Field(ge=0, le=366)
