"""Tests for lifecycle event construction and dispatch."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from leavepoint.models.enums import EventType, LeaveCommand, NotificationPriority, RecipientRole, RequestStatus
from leavepoint.models.request import LeaveRequest
from leavepoint.schemas.event import LifecycleEvent
from leavepoint.services.lifecycle import transition_for
from leavepoint.services.notification import (
    InMemoryNotificationSink,
    LoggingNotificationSink,
    build_event,
    dispatch_events,
)

if TYPE_CHECKING:
    import pytest


class _FailingSink:
    async def publish(self, event: LifecycleEvent) -> None:
        msg = "slack is down"
        raise RuntimeError(msg)


def _request(status: RequestStatus) -> LeaveRequest:
    return LeaveRequest(
        id=uuid.uuid4(),
        team_member="Jane Doe",
        team_member_email="jane.doe@zimworx.org",
        leave_type="annual",
        start_date=date(2025, 6, 2),
        end_date=date(2025, 6, 6),
        days=5,
        status=status.value,
        submitted_by="jane.doe@zimworx.org",
        submitted_at=datetime.now(UTC),
        assigned_to="Csp",
        assigned_to_email="csp@zimworx.com",
        client_name="Acme Logistics",
        pto_balance_snapshot={"annual_pto": 12, "used_pto": 2, "remaining_pto": 10},
    )


def test_submitted_event_goes_to_csp() -> None:
    event = build_event(
        transition_for(LeaveCommand.SUBMIT), _request(RequestStatus.CSP_REVIEW), "jane.doe@zimworx.org"
    )
    assert event.type == EventType.SUBMITTED
    assert event.priority == NotificationPriority.HIGH
    assert [r.role for r in event.recipients] == [RecipientRole.CSP]
    assert event.recipients[0].email == "csp@zimworx.com"
    assert "10/12" in event.message


def test_forwarded_event_reaches_client() -> None:
    event = build_event(
        transition_for(LeaveCommand.CSP_APPROVE), _request(RequestStatus.PENDING_CLIENT_APPROVAL), "csp@zimworx.com"
    )
    assert event.type == EventType.FORWARDED_TO_CLIENT
    assert event.recipients[0].role == RecipientRole.CLIENT
    assert event.recipients[0].name == "Acme Logistics"


def test_rejection_event_carries_reason() -> None:
    event = build_event(
        transition_for(LeaveCommand.CSP_REJECT),
        _request(RequestStatus.REJECTED),
        "csp@zimworx.com",
        note="Overlaps with quarter close",
    )
    assert event.status == RequestStatus.REJECTED
    assert "Overlaps with quarter close" in event.message
    assert [r.role for r in event.recipients] == [RecipientRole.USER]


def test_payroll_event_targets_payroll() -> None:
    event = build_event(
        transition_for(LeaveCommand.SEND_TO_PAYROLL), _request(RequestStatus.SENT_TO_PAYROLL), "csp@zimworx.com"
    )
    assert RecipientRole.PAYROLL in {r.role for r in event.recipients}


async def test_dispatch_collects_events() -> None:
    sink = InMemoryNotificationSink()
    event = build_event(transition_for(LeaveCommand.PAYROLL_ACK), _request(RequestStatus.APPROVED), "payroll")
    assert await dispatch_events([event], sink) == 1
    assert sink.of_type(EventType.COMPLETED) == [event]


async def test_failing_sink_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    event = build_event(transition_for(LeaveCommand.PAYROLL_ACK), _request(RequestStatus.APPROVED), "payroll")
    with caplog.at_level(logging.ERROR, logger="leavepoint.services.notification"):
        delivered = await dispatch_events([event], _FailingSink())
    assert delivered == 0
    assert "Failed to publish" in caplog.text


async def test_logging_sink(caplog: pytest.LogCaptureFixture) -> None:
    event = build_event(transition_for(LeaveCommand.PAYROLL_ACK), _request(RequestStatus.APPROVED), "payroll")
    with caplog.at_level(logging.INFO, logger="leavepoint.services.notification"):
        await LoggingNotificationSink().publish(event)
    assert "request.completed" in caplog.text


class _SlowSink:
    async def publish(self, event: LifecycleEvent) -> None:
        await asyncio.sleep(2)


async def test_slow_sink_times_out(caplog: pytest.LogCaptureFixture) -> None:
    event = build_event(transition_for(LeaveCommand.PAYROLL_ACK), _request(RequestStatus.APPROVED), "payroll")
    with caplog.at_level(logging.ERROR, logger="leavepoint.services.notification"):
        delivered = await dispatch_events([event], _SlowSink(), timeout=0.05)
    assert delivered == 0
    assert "Timed out" in caplog.text
