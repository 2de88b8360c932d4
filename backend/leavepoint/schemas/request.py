# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from leavepoint.models.enums import ApprovalMethod, DayPolicy, RequestStatus
from leavepoint.schemas.balance import PTOBalance

# ---------------------------------------------------------------------------
# Command payloads
# ---------------------------------------------------------------------------


class SubmitLeaveRequestPayload(BaseModel):
    """Request body for submitting a new leave request.

    Presence and ordering checks run in the service so that every field
    problem is reported in a single ``ValidationError``.
    """

    team_member: str = ""
    team_member_email: str | None = None
    leave_type: str = ""
    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = Field(default=None, max_length=2000)
    sick_note_ref: str | None = Field(default=None, max_length=1024)
    day_policy: DayPolicy | None = None
    submitted_by: str | None = None


class TransitionPayload(BaseModel):
    """Fields shared by every command applied to an existing request."""

    note: str | None = Field(default=None, max_length=2000)
    expected_version: int | None = Field(default=None, ge=1)


class CspReviewPayload(TransitionPayload):
    """CSP verification decision."""

    approved: bool


class ClientResponsePayload(TransitionPayload):
    """Client decision recorded by the CSP after an offline exchange."""

    approved: bool
    client_name: str | None = Field(default=None, max_length=255)
    approval_method: ApprovalMethod = ApprovalMethod.OFFLINE


class SendToPayrollPayload(TransitionPayload):
    """Hand-off of a client-approved request to payroll."""


class PayrollAckPayload(TransitionPayload):
    """Payroll confirmation that the leave has been processed."""


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AuditEntryResponse(BaseModel):
    """A single history entry."""

    sequence: int
    action: str
    actor: str
    note: str | None
    timestamp: datetime


class LeaveRequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    team_member: str
    team_member_email: str | None
    leave_type: str
    start_date: date
    end_date: date
    days: int
    day_policy: DayPolicy
    reason: str | None
    status: RequestStatus
    version: int
    submitted_by: str
    submitted_at: datetime
    assigned_to: str | None
    assigned_to_email: str | None
    client_name: str | None
    sick_note_ref: str | None
    balance_sufficient: bool
    pto_balance_snapshot: dict[str, Any] | None
    csp_reviewed_by: str | None
    csp_reviewed_at: datetime | None
    csp_notes: str | None
    client_decided_by: str | None
    client_decided_at: datetime | None
    client_approval_method: str | None
    client_notes: str | None
    sent_to_payroll_by: str | None
    sent_to_payroll_at: datetime | None
    completed_at: datetime | None
    history: list[AuditEntryResponse] = Field(default_factory=list)


class LeaveRequestListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[LeaveRequestResponse]
    total: int


class SubmissionResponse(BaseModel):
    """Result of a submission: the new request plus advisory findings."""

    request_id: uuid.UUID
    status: RequestStatus
    days: int
    day_policy: DayPolicy
    balance: PTOBalance
    balance_sufficient: bool
    warnings: list[str] = Field(default_factory=list)
    request: LeaveRequestResponse


class TransitionResponse(BaseModel):
    """Result of a lifecycle command."""

    request: LeaveRequestResponse
    replayed: bool = False
    warnings: list[str] = Field(default_factory=list)


class AuditHistoryResponse(BaseModel):
    """Ordered history of one request."""

    request_id: uuid.UUID
    status: RequestStatus
    items: list[AuditEntryResponse]
