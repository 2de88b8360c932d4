# ruff: noqa: TC003
from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from leavepoint.models.base import _now_utc


class PTOBalanceRecord(SQLModel, table=True):
    """Annual allowance and consumed days for one team member."""

    __tablename__ = "pto_balance"

    team_member: str = Field(primary_key=True, max_length=255)
    annual_pto: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    used_pto: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now(), "onupdate": sa.func.now()},
    )
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
