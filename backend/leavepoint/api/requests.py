# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from leavepoint.api.deps import ActorDep
from leavepoint.db import SessionDep
from leavepoint.models.enums import RequestStatus
from leavepoint.schemas.request import (
    AuditHistoryResponse,
    ClientResponsePayload,
    CspReviewPayload,
    LeaveRequestListResponse,
    LeaveRequestResponse,
    PayrollAckPayload,
    SendToPayrollPayload,
    SubmissionResponse,
    SubmitLeaveRequestPayload,
    TransitionResponse,
)
from leavepoint.services import request as request_service

requests_router = APIRouter(prefix="/leave-requests", tags=["leave-requests"])


@requests_router.post("", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_leave_request(
    payload: SubmitLeaveRequestPayload,
    session: SessionDep,
    actor: ActorDep,
) -> SubmissionResponse:
    """Submit a new leave request into CSP review."""
    return await request_service.submit_leave_request(session, actor, payload)


@requests_router.get("", response_model=LeaveRequestListResponse)
async def list_leave_requests(
    session: SessionDep,
    actor: ActorDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    team_member: str | None = Query(default=None),
    assigned_to_email: str | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveRequestListResponse:
    """List leave requests with optional filters."""
    return await request_service.list_requests(session, status_filter, team_member, assigned_to_email, offset, limit)


@requests_router.get("/queue", response_model=LeaveRequestListResponse)
async def review_queue(session: SessionDep, actor: ActorDep) -> LeaveRequestListResponse:
    """Open requests the calling CSP is responsible for."""
    return await request_service.list_review_queue(session, actor)


@requests_router.get("/{request_id}", response_model=LeaveRequestResponse)
async def get_leave_request(
    request_id: uuid.UUID,
    session: SessionDep,
    actor: ActorDep,
) -> LeaveRequestResponse:
    """Get a single leave request with its history."""
    return await request_service.get_request(session, request_id)


@requests_router.get("/{request_id}/history", response_model=AuditHistoryResponse)
async def get_leave_request_history(
    request_id: uuid.UUID,
    session: SessionDep,
    actor: ActorDep,
) -> AuditHistoryResponse:
    """Ordered audit trail of a leave request."""
    return await request_service.get_history(session, request_id)


@requests_router.post("/{request_id}/csp-review", response_model=TransitionResponse)
async def csp_review(
    request_id: uuid.UUID,
    payload: CspReviewPayload,
    session: SessionDep,
    actor: ActorDep,
) -> TransitionResponse:
    """Forward a request to the client or reject it (assigned CSP only)."""
    return await request_service.csp_review(session, actor, request_id, payload)


@requests_router.post("/{request_id}/client-response", response_model=TransitionResponse)
async def client_response(
    request_id: uuid.UUID,
    payload: ClientResponsePayload,
    session: SessionDep,
    actor: ActorDep,
) -> TransitionResponse:
    """Record the client's decision (assigned CSP only)."""
    return await request_service.mark_client_response(session, actor, request_id, payload)


@requests_router.post("/{request_id}/send-to-payroll", response_model=TransitionResponse)
async def send_to_payroll(
    request_id: uuid.UUID,
    session: SessionDep,
    actor: ActorDep,
    payload: SendToPayrollPayload | None = None,
) -> TransitionResponse:
    """Send a client-approved request to payroll (assigned CSP only)."""
    return await request_service.send_to_payroll(session, actor, request_id, payload or SendToPayrollPayload())


@requests_router.post("/{request_id}/payroll-ack", response_model=TransitionResponse)
async def payroll_ack(
    request_id: uuid.UUID,
    session: SessionDep,
    actor: ActorDep,
    payload: PayrollAckPayload | None = None,
) -> TransitionResponse:
    """Confirm payroll processing (payroll or admin role)."""
    return await request_service.acknowledge_payroll(session, actor, request_id, payload or PayrollAckPayload())
