"""Notification sink interface and the events built from lifecycle transitions.

Delivery is fire-and-forget: events are dispatched after the transition has
been committed and a failing sink never undoes it.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from leavepoint.config import get_settings
from leavepoint.models.enums import EventType, NotificationPriority, RecipientRole, RequestStatus
from leavepoint.schemas.event import LifecycleEvent, Recipient

if TYPE_CHECKING:
    from collections.abc import Iterable

    from leavepoint.models.request import LeaveRequest
    from leavepoint.services.lifecycle import Transition

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationSink(Protocol):
    """Interface for whatever delivers events (in-app, Slack, email, sheets)."""

    async def publish(self, event: LifecycleEvent) -> None:
        """Deliver one event."""
        ...


class InMemoryNotificationSink:
    """Collects events in memory. Used in development and tests."""

    def __init__(self) -> None:
        self.events: list[LifecycleEvent] = []

    async def publish(self, event: LifecycleEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: EventType) -> list[LifecycleEvent]:
        return [e for e in self.events if e.type == event_type]


class LoggingNotificationSink:
    """Writes events to the application log."""

    async def publish(self, event: LifecycleEvent) -> None:
        logger.info(
            "Event %s for request %s -> %s: %s",
            event.type,
            event.request_id,
            ", ".join(r.role.value for r in event.recipients) or "nobody",
            event.message,
        )


_notification_sink: NotificationSink = LoggingNotificationSink()


def get_notification_sink() -> NotificationSink:
    """FastAPI dependency for the notification sink."""
    return _notification_sink


def set_notification_sink(sink: NotificationSink) -> None:
    """Override the sink (for testing or production wiring)."""
    global _notification_sink
    _notification_sink = sink


# ---------------------------------------------------------------------------
# Event construction
# ---------------------------------------------------------------------------


def _csp(request: LeaveRequest) -> Recipient:
    return Recipient(role=RecipientRole.CSP, name=request.assigned_to, email=request.assigned_to_email)


def _team_member(request: LeaveRequest) -> Recipient:
    return Recipient(role=RecipientRole.USER, name=request.team_member, email=request.team_member_email)


def _describe(request: LeaveRequest) -> str:
    return (
        f"{request.team_member} - {request.leave_type}: {request.days} days "
        f"({request.start_date.isoformat()} to {request.end_date.isoformat()})"
    )


def build_event(
    transition: Transition,
    request: LeaveRequest,
    actor: str,
    note: str | None = None,
    occurred_at: datetime | None = None,
) -> LifecycleEvent:
    """Build the event a committed transition emits."""
    summary = _describe(request)
    recipients: list[Recipient]
    priority = NotificationPriority.NORMAL

    match transition.event:
        case EventType.SUBMITTED:
            snapshot = request.pto_balance_snapshot or {}
            message = (
                f"{summary} submitted. Balance: {snapshot.get('remaining_pto', '?')}/"
                f"{snapshot.get('annual_pto', '?')} days remaining."
            )
            if not request.balance_sufficient:
                message += " Balance is insufficient for this request."
            recipients = [_csp(request)]
            priority = NotificationPriority.HIGH
        case EventType.FORWARDED_TO_CLIENT:
            message = f"{summary}. CSP {actor} verified; client approval required."
            recipients = [Recipient(role=RecipientRole.CLIENT, name=request.client_name), _csp(request)]
            priority = NotificationPriority.HIGH
        case EventType.REJECTED:
            message = f"{summary} was rejected by CSP. Reason: {note}"
            recipients = [_team_member(request)]
            priority = NotificationPriority.HIGH
        case EventType.CLIENT_APPROVED:
            message = f"{summary} approved by client {request.client_name}. Ready to send to payroll."
            recipients = [_csp(request), _team_member(request)]
        case EventType.CLIENT_DENIED:
            message = f"{summary} was rejected by the client. Reason: {note}"
            recipients = [_csp(request), _team_member(request)]
            priority = NotificationPriority.HIGH
        case EventType.SENT_TO_PAYROLL:
            message = f"{summary}. Client approved; sent to payroll for processing."
            recipients = [Recipient(role=RecipientRole.PAYROLL), _csp(request)]
            priority = NotificationPriority.HIGH
        case _:
            message = f"{summary} processed by payroll."
            recipients = [_team_member(request), _csp(request)]

    return LifecycleEvent(
        type=transition.event,
        request_id=request.id,
        team_member=request.team_member,
        leave_type=request.leave_type,
        status=RequestStatus(request.status),
        actor=actor,
        occurred_at=occurred_at or datetime.now(UTC),
        message=message,
        priority=priority,
        recipients=recipients,
    )


async def dispatch_events(
    events: Iterable[LifecycleEvent],
    sink: NotificationSink | None = None,
    timeout: float | None = None,
) -> int:
    """Publish events, logging and skipping any the sink fails to deliver.

    Each publish is bounded by ``timeout`` (``notification_timeout_seconds``
    by default). Returns the number of events delivered.
    """
    target = sink or get_notification_sink()
    limit = timeout if timeout is not None else get_settings().notification_timeout_seconds
    delivered = 0
    for event in events:
        try:
            async with asyncio.timeout(limit):
                await target.publish(event)
        except TimeoutError:
            logger.error("Timed out after %ss publishing %s for request %s", limit, event.type, event.request_id)
            continue
        except Exception:
            logger.exception("Failed to publish %s for request %s", event.type, event.request_id)
            continue
        delivered += 1
    return delivered
