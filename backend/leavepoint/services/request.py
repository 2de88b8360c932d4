# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlmodel import col

from leavepoint.config import get_settings
from leavepoint.exceptions import (
    ConcurrentModification,
    MissingJustification,
    NotAuthorized,
    RequestNotFound,
    ValidationError,
)
from leavepoint.models.enums import DayPolicy, LeaveCommand, LeaveType, RequestStatus
from leavepoint.models.request import LeaveRequest
from leavepoint.schemas.request import (
    AuditHistoryResponse,
    LeaveRequestListResponse,
    LeaveRequestResponse,
    SubmissionResponse,
    TransitionResponse,
)
from leavepoint.services import audit
from leavepoint.services.assignment import get_assignment_provider, is_authorized, resolve_assignee
from leavepoint.services.balance import (
    check_balance,
    compute_days,
    consume_balance,
    get_balance,
    leave_policy_warnings,
)
from leavepoint.services.lifecycle import TERMINAL_STATUSES, resolve_transition, transition_for
from leavepoint.services.notification import build_event, dispatch_events

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leavepoint.models.audit import LeaveAuditEntry
    from leavepoint.schemas.auth import Actor
    from leavepoint.schemas.balance import PTOBalance
    from leavepoint.schemas.request import (
        ClientResponsePayload,
        CspReviewPayload,
        PayrollAckPayload,
        SendToPayrollPayload,
        SubmitLeaveRequestPayload,
        TransitionPayload,
    )

logger = logging.getLogger(__name__)

PAYROLL_ROLES = frozenset({"payroll", "admin"})


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_request_response(
    request: LeaveRequest,
    entries: list[LeaveAuditEntry] | None = None,
) -> LeaveRequestResponse:
    """Map a request model (and optionally its history) to its response schema."""
    return LeaveRequestResponse(
        id=request.id,
        team_member=request.team_member,
        team_member_email=request.team_member_email,
        leave_type=request.leave_type,
        start_date=request.start_date,
        end_date=request.end_date,
        days=request.days,
        day_policy=DayPolicy(request.day_policy),
        reason=request.reason,
        status=RequestStatus(request.status),
        version=request.version,
        submitted_by=request.submitted_by,
        submitted_at=request.submitted_at,
        assigned_to=request.assigned_to,
        assigned_to_email=request.assigned_to_email,
        client_name=request.client_name,
        sick_note_ref=request.sick_note_ref,
        balance_sufficient=request.balance_sufficient,
        pto_balance_snapshot=request.pto_balance_snapshot,
        csp_reviewed_by=request.csp_reviewed_by,
        csp_reviewed_at=request.csp_reviewed_at,
        csp_notes=request.csp_notes,
        client_decided_by=request.client_decided_by,
        client_decided_at=request.client_decided_at,
        client_approval_method=request.client_approval_method,
        client_notes=request.client_notes,
        sent_to_payroll_by=request.sent_to_payroll_by,
        sent_to_payroll_at=request.sent_to_payroll_at,
        completed_at=request.completed_at,
        history=[audit.build_audit_entry_response(e) for e in entries or []],
    )


async def _build_with_history(session: AsyncSession, request: LeaveRequest) -> LeaveRequestResponse:
    return _build_request_response(request, await audit.history(session, request.id))


def _balance_snapshot(balance: PTOBalance, at: datetime) -> dict[str, Any]:
    snapshot: dict[str, Any] = balance.model_dump()
    snapshot["captured_at"] = at.isoformat()
    return snapshot


def _clean(value: str | None) -> str | None:
    return (value or "").strip() or None


async def _get_request_or_404(
    session: AsyncSession,
    request_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> LeaveRequest:
    """Fetch a request by ID. Raises RequestNotFound if absent."""
    query = select(LeaveRequest).where(col(LeaveRequest.id) == request_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    request = result.scalar_one_or_none()
    if request is None:
        raise RequestNotFound
    return request


def _validate_submission(payload: SubmitLeaveRequestPayload) -> dict[str, list[str]]:
    """Collect every field problem of a submission."""
    errors: dict[str, list[str]] = {}
    if not payload.team_member.strip():
        errors.setdefault("team_member", []).append("team_member is required")
    if not payload.leave_type.strip():
        errors.setdefault("leave_type", []).append("leave_type is required")
    if payload.start_date is None:
        errors.setdefault("start_date", []).append("start_date is required")
    if payload.end_date is None:
        errors.setdefault("end_date", []).append("end_date is required")
    if payload.start_date is not None and payload.end_date is not None and payload.end_date < payload.start_date:
        errors.setdefault("end_date", []).append("end_date must be on or after start_date")
    return errors


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


async def submit_leave_request(
    session: AsyncSession,
    actor: Actor,
    payload: SubmitLeaveRequestPayload,
    *,
    today: date | None = None,
) -> SubmissionResponse:
    """Create a request in csp-review with its first history entry.

    The balance check is advisory unless ``block_on_insufficient_balance``
    is configured; notice and length findings are returned as warnings.
    """
    errors = _validate_submission(payload)
    if errors or payload.start_date is None or payload.end_date is None:
        raise ValidationError(errors)

    settings = get_settings()
    now = datetime.now(UTC)
    team_member = payload.team_member.strip()
    team_member_email = _clean(payload.team_member_email)
    leave_type = payload.leave_type.strip().lower()
    policy = payload.day_policy or DayPolicy(settings.default_day_policy)

    assignments = await get_assignment_provider().list_assignments()
    assignee = resolve_assignee(team_member, assignments, team_member_email)
    if assignee is not None:
        # Balance rows and history are keyed on the assignment table identity.
        if team_member_email is None and "@" in team_member:
            team_member_email = team_member
        team_member = assignee.team_member

    days = compute_days(payload.start_date, payload.end_date, policy)
    balance = await get_balance(session, team_member)
    check = check_balance(balance, days, blocking=settings.block_on_insufficient_balance)

    warnings = leave_policy_warnings(payload.start_date, days, today or now.date(), settings)
    if not check.sufficient:
        warnings.append(
            f"Insufficient PTO balance. Requested: {days} days, Available: {balance.remaining_pto} days."
        )
        logger.warning(
            "Insufficient balance for %s: %d days requested, %d remaining", team_member, days, balance.remaining_pto
        )

    if assignee is None:
        warnings.append(f"No CSP assignment found for {team_member}")
        logger.warning("No CSP assignment found for %s", team_member)

    request = LeaveRequest(
        team_member=team_member,
        team_member_email=team_member_email or (assignee.team_member_email if assignee else None),
        leave_type=leave_type,
        start_date=payload.start_date,
        end_date=payload.end_date,
        days=days,
        day_policy=policy.value,
        reason=_clean(payload.reason),
        status=RequestStatus.CSP_REVIEW.value,
        version=1,
        submitted_by=_clean(payload.submitted_by) or actor.identity,
        submitted_at=now,
        assigned_to=assignee.csp_name if assignee else None,
        assigned_to_email=assignee.csp_email if assignee else None,
        client_name=assignee.client_name if assignee else None,
        sick_note_ref=_clean(payload.sick_note_ref),
        balance_sufficient=check.sufficient,
        pto_balance_snapshot=_balance_snapshot(balance, now),
    )
    session.add(request)
    await session.flush()

    transition = transition_for(LeaveCommand.SUBMIT)
    note = f"Assigned to {request.assigned_to}" if request.assigned_to else "No CSP assignment found"
    await audit.append(session, request.id, transition.action, request.submitted_by, note, at=now)
    await session.commit()
    await session.refresh(request)

    logger.info("Leave request %s submitted for %s (%d %s)", request.id, team_member, days, policy.value)
    await dispatch_events([build_event(transition, request, request.submitted_by, occurred_at=now)])

    return SubmissionResponse(
        request_id=request.id,
        status=RequestStatus(request.status),
        days=days,
        day_policy=policy,
        balance=balance,
        balance_sufficient=check.sufficient,
        warnings=warnings,
        request=await _build_with_history(session, request),
    )


# ---------------------------------------------------------------------------
# Lifecycle commands
# ---------------------------------------------------------------------------


async def _apply_command(
    session: AsyncSession,
    actor: Actor,
    request_id: uuid.UUID,
    command: LeaveCommand,
    payload: TransitionPayload,
    *,
    client_name: str | None = None,
    approval_method: str | None = None,
) -> TransitionResponse:
    """Run one command through the guards, then mutate, audit and commit.

    Guards run in a fixed order (justification, authorization, version,
    replay, legality, payload) and all of them before any mutation.
    """
    transition = transition_for(command)
    note = _clean(payload.note)

    if transition.requires_justification and note is None:
        raise MissingJustification(command.value)

    request = await _get_request_or_404(session, request_id, for_update=True)

    assignments = await get_assignment_provider().list_assignments()
    if transition.requires_assignee:
        if not is_authorized(actor, request, assignments):
            raise NotAuthorized
    elif actor.role not in PAYROLL_ROLES:
        raise NotAuthorized("Payroll or admin role required")

    if payload.expected_version is not None and payload.expected_version != request.version:
        raise ConcurrentModification(payload.expected_version, request.version)

    if payload.expected_version is None and request.status == transition.target.value:
        entries = await audit.history(session, request.id)
        if entries and entries[-1].action == transition.action.value:
            logger.info("Command %s on request %s already applied", command.value, request.id)
            return TransitionResponse(request=_build_request_response(request, entries), replayed=True)

    resolve_transition(request.status, command)

    if command is LeaveCommand.MARK_CLIENT_APPROVED:
        errors: dict[str, list[str]] = {}
        if note is None:
            errors["note"] = ["A note describing the client approval is required"]
        if not (client_name or request.client_name):
            errors["client_name"] = ["client_name is required"]
        if errors:
            raise ValidationError(errors)

    now = datetime.now(UTC)
    warnings: list[str] = []

    if request.assigned_to is None and transition.requires_assignee:
        assignee = resolve_assignee(request.team_member, assignments, request.team_member_email)
        if assignee is not None:
            request.team_member = assignee.team_member
            request.team_member_email = request.team_member_email or assignee.team_member_email
            request.assigned_to = assignee.csp_name
            request.assigned_to_email = assignee.csp_email
            request.client_name = request.client_name or assignee.client_name

    match command:
        case LeaveCommand.CSP_APPROVE | LeaveCommand.CSP_REJECT:
            request.csp_reviewed_by = actor.identity
            request.csp_reviewed_at = now
            request.csp_notes = note
            balance = await get_balance(session, request.team_member)
            request.pto_balance_snapshot = _balance_snapshot(balance, now)
            request.balance_sufficient = check_balance(balance, request.days).sufficient
            if command is LeaveCommand.CSP_APPROVE and not request.balance_sufficient:
                warnings.append(
                    f"Insufficient PTO balance. Requested: {request.days} days, "
                    f"Available: {balance.remaining_pto} days."
                )
                logger.warning("Leave request %s forwarded with insufficient balance", request.id)
            if (
                command is LeaveCommand.CSP_APPROVE
                and request.leave_type == LeaveType.SICK.value
                and not request.sick_note_ref
            ):
                warnings.append("Sick leave forwarded without a sick note")
                logger.warning("Sick leave request %s forwarded without a sick note", request.id)
        case LeaveCommand.MARK_CLIENT_APPROVED | LeaveCommand.MARK_CLIENT_REJECTED:
            request.client_decided_by = actor.identity
            request.client_decided_at = now
            request.client_approval_method = approval_method
            request.client_notes = note
            request.client_name = client_name or request.client_name
        case LeaveCommand.SEND_TO_PAYROLL:
            request.sent_to_payroll_by = actor.identity
            request.sent_to_payroll_at = now
        case LeaveCommand.PAYROLL_ACK:
            request.completed_at = now

    if transition.consumes_balance:
        await consume_balance(session, request, transition.target)

    previous = request.status
    request.status = transition.target.value
    request.version += 1
    await audit.append(session, request.id, transition.action, actor.identity, note, at=now)
    await session.commit()
    await session.refresh(request)

    logger.info(
        "Leave request %s moved %s -> %s by %s (version %d)",
        request.id,
        previous,
        request.status,
        actor.identity,
        request.version,
    )
    await dispatch_events([build_event(transition, request, actor.identity, note, now)])

    return TransitionResponse(request=await _build_with_history(session, request), warnings=warnings)


async def csp_review(
    session: AsyncSession,
    actor: Actor,
    request_id: uuid.UUID,
    payload: CspReviewPayload,
) -> TransitionResponse:
    """Forward the request to the client, or reject it with a note."""
    command = LeaveCommand.CSP_APPROVE if payload.approved else LeaveCommand.CSP_REJECT
    return await _apply_command(session, actor, request_id, command, payload)


async def mark_client_response(
    session: AsyncSession,
    actor: Actor,
    request_id: uuid.UUID,
    payload: ClientResponsePayload,
) -> TransitionResponse:
    """Record the client's out-of-band decision."""
    command = LeaveCommand.MARK_CLIENT_APPROVED if payload.approved else LeaveCommand.MARK_CLIENT_REJECTED
    return await _apply_command(
        session,
        actor,
        request_id,
        command,
        payload,
        client_name=_clean(payload.client_name),
        approval_method=payload.approval_method.value,
    )


async def send_to_payroll(
    session: AsyncSession,
    actor: Actor,
    request_id: uuid.UUID,
    payload: SendToPayrollPayload,
) -> TransitionResponse:
    """Hand a client-approved request to payroll and consume its days."""
    return await _apply_command(session, actor, request_id, LeaveCommand.SEND_TO_PAYROLL, payload)


async def acknowledge_payroll(
    session: AsyncSession,
    actor: Actor,
    request_id: uuid.UUID,
    payload: PayrollAckPayload,
) -> TransitionResponse:
    """Close a request once payroll has processed it."""
    return await _apply_command(session, actor, request_id, LeaveCommand.PAYROLL_ACK, payload)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_request(session: AsyncSession, request_id: uuid.UUID) -> LeaveRequestResponse:
    """Get a single request with its history."""
    request = await _get_request_or_404(session, request_id)
    return await _build_with_history(session, request)


async def get_history(session: AsyncSession, request_id: uuid.UUID) -> AuditHistoryResponse:
    request = await _get_request_or_404(session, request_id)
    entries = await audit.history(session, request.id)
    return AuditHistoryResponse(
        request_id=request.id,
        status=RequestStatus(request.status),
        items=[audit.build_audit_entry_response(e) for e in entries],
    )


async def list_requests(
    session: AsyncSession,
    status_filter: RequestStatus | None = None,
    team_member: str | None = None,
    assigned_to_email: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> LeaveRequestListResponse:
    """List requests with optional filters, newest submission first."""
    filters = []
    if status_filter is not None:
        filters.append(col(LeaveRequest.status) == status_filter.value)
    if team_member is not None:
        filters.append(func.lower(col(LeaveRequest.team_member)) == team_member.strip().lower())
    if assigned_to_email is not None:
        filters.append(func.lower(col(LeaveRequest.assigned_to_email)) == assigned_to_email.strip().lower())

    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest)
        .where(*filters)
        .order_by(col(LeaveRequest.submitted_at).desc())
        .offset(offset)
        .limit(limit)
    )
    requests = list(result.scalars().all())

    return LeaveRequestListResponse(
        items=[_build_request_response(r) for r in requests],
        total=total,
    )


async def list_review_queue(session: AsyncSession, actor: Actor) -> LeaveRequestListResponse:
    """Open requests the actor may act on as their CSP, oldest first."""
    open_statuses = [s.value for s in RequestStatus if s not in TERMINAL_STATUSES]
    result = await session.execute(
        select(LeaveRequest)
        .where(col(LeaveRequest.status).in_(open_statuses))
        .order_by(col(LeaveRequest.submitted_at))
    )
    assignments = await get_assignment_provider().list_assignments()
    queue = [r for r in result.scalars().all() if is_authorized(actor, r, assignments)]
    return LeaveRequestListResponse(
        items=[_build_request_response(r) for r in queue],
        total=len(queue),
    )
