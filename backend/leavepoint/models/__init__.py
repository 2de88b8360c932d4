from sqlmodel import SQLModel

from leavepoint.models.audit import LeaveAuditEntry
from leavepoint.models.balance import PTOBalanceRecord
from leavepoint.models.base import TimestampMixin, UUIDBase
from leavepoint.models.enums import (
    ApprovalMethod,
    AuditAction,
    DayPolicy,
    EventType,
    LeaveCommand,
    LeaveType,
    NotificationPriority,
    RecipientRole,
    RequestStatus,
)
from leavepoint.models.ledger import PTOUsageEntry
from leavepoint.models.request import LeaveRequest

__all__ = [
    "ApprovalMethod",
    "AuditAction",
    "DayPolicy",
    "EventType",
    "LeaveAuditEntry",
    "LeaveCommand",
    "LeaveRequest",
    "LeaveType",
    "NotificationPriority",
    "PTOBalanceRecord",
    "PTOUsageEntry",
    "RecipientRole",
    "RequestStatus",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
]
