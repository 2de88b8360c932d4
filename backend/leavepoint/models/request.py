# ruff: noqa: TC003
from __future__ import annotations

import datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from leavepoint.models.base import TimestampMixin, UUIDBase
from leavepoint.models.enums import DayPolicy, RequestStatus


class LeaveRequest(UUIDBase, TimestampMixin, table=True):
    """A team member's leave request and its progress through the approval pipeline."""

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_leave_request_status", "status"),
        sa.Index("ix_leave_request_assignee", "assigned_to_email"),
    )

    team_member: str = Field(max_length=255, index=True)
    team_member_email: str | None = Field(default=None, max_length=255)
    leave_type: str = Field(max_length=50)
    start_date: datetime.date
    end_date: datetime.date
    days: int
    day_policy: str = Field(default=DayPolicy.BUSINESS_DAYS, max_length=20)
    reason: str | None = None
    status: str = Field(default=RequestStatus.CSP_REVIEW, max_length=50)
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})

    submitted_by: str = Field(max_length=255)
    submitted_at: datetime.datetime = Field(sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]

    assigned_to: str | None = Field(default=None, max_length=255)
    assigned_to_email: str | None = Field(default=None, max_length=255)
    client_name: str | None = Field(default=None, max_length=255)

    sick_note_ref: str | None = Field(default=None, max_length=1024)
    balance_sufficient: bool = True
    pto_balance_snapshot: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)

    csp_reviewed_by: str | None = Field(default=None, max_length=255)
    csp_reviewed_at: datetime.datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    csp_notes: str | None = None

    client_decided_by: str | None = Field(default=None, max_length=255)
    client_decided_at: datetime.datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    client_approval_method: str | None = Field(default=None, max_length=50)
    client_notes: str | None = None

    sent_to_payroll_by: str | None = Field(default=None, max_length=255)
    sent_to_payroll_at: datetime.datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    completed_at: datetime.datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
