# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from leavepoint.models.enums import EventType, NotificationPriority, RecipientRole, RequestStatus


class Recipient(BaseModel):
    """Audience of a lifecycle event."""

    role: RecipientRole
    name: str | None = None
    email: str | None = None


class LifecycleEvent(BaseModel):
    """Domain event emitted after a transition is committed."""

    type: EventType
    request_id: uuid.UUID
    team_member: str
    leave_type: str
    status: RequestStatus
    actor: str
    occurred_at: datetime
    message: str
    priority: NotificationPriority = NotificationPriority.NORMAL
    recipients: list[Recipient] = Field(default_factory=list)
