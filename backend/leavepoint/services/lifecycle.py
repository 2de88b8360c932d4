"""Transition table for the leave request lifecycle.

Every command maps to exactly one source status; the table is the only place
that knows which command moves a request where, which audit action it
records and which event it emits.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from leavepoint.exceptions import InvalidTransition
from leavepoint.models.enums import AuditAction, EventType, LeaveCommand, RequestStatus

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True)
class Transition:
    """One row of the lifecycle table."""

    command: LeaveCommand
    source: RequestStatus | None
    target: RequestStatus
    action: AuditAction
    event: EventType
    requires_assignee: bool = True
    requires_justification: bool = False
    consumes_balance: bool = False


TRANSITIONS: tuple[Transition, ...] = (
    Transition(
        command=LeaveCommand.SUBMIT,
        source=None,
        target=RequestStatus.CSP_REVIEW,
        action=AuditAction.SUBMITTED,
        event=EventType.SUBMITTED,
        requires_assignee=False,
    ),
    Transition(
        command=LeaveCommand.CSP_APPROVE,
        source=RequestStatus.CSP_REVIEW,
        target=RequestStatus.PENDING_CLIENT_APPROVAL,
        action=AuditAction.CSP_APPROVED,
        event=EventType.FORWARDED_TO_CLIENT,
    ),
    Transition(
        command=LeaveCommand.CSP_REJECT,
        source=RequestStatus.CSP_REVIEW,
        target=RequestStatus.REJECTED,
        action=AuditAction.CSP_REJECTED,
        event=EventType.REJECTED,
        requires_justification=True,
    ),
    Transition(
        command=LeaveCommand.MARK_CLIENT_APPROVED,
        source=RequestStatus.PENDING_CLIENT_APPROVAL,
        target=RequestStatus.CLIENT_APPROVED,
        action=AuditAction.CLIENT_APPROVED,
        event=EventType.CLIENT_APPROVED,
    ),
    Transition(
        command=LeaveCommand.MARK_CLIENT_REJECTED,
        source=RequestStatus.PENDING_CLIENT_APPROVAL,
        target=RequestStatus.DENIED,
        action=AuditAction.CLIENT_REJECTED,
        event=EventType.CLIENT_DENIED,
        requires_justification=True,
    ),
    Transition(
        command=LeaveCommand.SEND_TO_PAYROLL,
        source=RequestStatus.CLIENT_APPROVED,
        target=RequestStatus.SENT_TO_PAYROLL,
        action=AuditAction.SENT_TO_PAYROLL,
        event=EventType.SENT_TO_PAYROLL,
        consumes_balance=True,
    ),
    Transition(
        command=LeaveCommand.PAYROLL_ACK,
        source=RequestStatus.SENT_TO_PAYROLL,
        target=RequestStatus.APPROVED,
        action=AuditAction.COMPLETED,
        event=EventType.COMPLETED,
        requires_assignee=False,
    ),
)

_BY_COMMAND: dict[LeaveCommand, Transition] = {t.command: t for t in TRANSITIONS}
_BY_ACTION: dict[AuditAction, Transition] = {t.action: t for t in TRANSITIONS}

TERMINAL_STATUSES = frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED, RequestStatus.DENIED})


def transition_for(command: LeaveCommand) -> Transition:
    """Return the table row for a command."""
    return _BY_COMMAND[command]


def resolve_transition(current: RequestStatus | str | None, command: LeaveCommand) -> Transition:
    """Return the transition for ``command`` from ``current`` or raise InvalidTransition."""
    transition = _BY_COMMAND[command]
    source = RequestStatus(current) if current is not None else None
    if transition.source != source:
        raise InvalidTransition(command.value, source.value if source is not None else "none")
    return transition


def allowed_commands(current: RequestStatus | str) -> list[LeaveCommand]:
    """Commands that are legal from ``current``."""
    status = RequestStatus(current)
    return [t.command for t in TRANSITIONS if t.source == status]


def is_terminal(status: RequestStatus | str) -> bool:
    return RequestStatus(status) in TERMINAL_STATUSES


def replay_status(actions: Iterable[AuditAction | str]) -> RequestStatus:
    """Fold a request's audit actions back into its status.

    Raises InvalidTransition when the history contains an action that is not
    legal from the status reached so far, and ValueError for an empty history.
    """
    status: RequestStatus | None = None
    for raw in actions:
        transition = _BY_ACTION[AuditAction(raw)]
        status = resolve_transition(status, transition.command).target
    if status is None:
        msg = "cannot replay an empty history"
        raise ValueError(msg)
    return status
