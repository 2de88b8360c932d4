from __future__ import annotations

import enum


class RequestStatus(enum.StrEnum):
    """State machine for leave requests."""

    CSP_REVIEW = "csp-review"
    PENDING_CLIENT_APPROVAL = "pending-client-approval"
    REJECTED = "rejected"
    CLIENT_APPROVED = "client-approved"
    DENIED = "denied"
    SENT_TO_PAYROLL = "sent-to-payroll"
    APPROVED = "approved"


class LeaveCommand(enum.StrEnum):
    """Commands accepted by the lifecycle engine."""

    SUBMIT = "submit"
    CSP_APPROVE = "csp-approve"
    CSP_REJECT = "csp-reject"
    MARK_CLIENT_APPROVED = "mark-client-approved"
    MARK_CLIENT_REJECTED = "mark-client-rejected"
    SEND_TO_PAYROLL = "send-to-payroll"
    PAYROLL_ACK = "payroll-ack"


class AuditAction(enum.StrEnum):
    """Action recorded in a request's history."""

    SUBMITTED = "submitted"
    CSP_APPROVED = "csp-approved"
    CSP_REJECTED = "csp-rejected"
    CLIENT_APPROVED = "client-approved"
    CLIENT_REJECTED = "client-rejected"
    SENT_TO_PAYROLL = "sent-to-payroll"
    COMPLETED = "completed"


class EventType(enum.StrEnum):
    """Domain events emitted to the notification sink."""

    SUBMITTED = "request.submitted"
    FORWARDED_TO_CLIENT = "request.forwarded-to-client"
    REJECTED = "request.rejected"
    CLIENT_APPROVED = "request.client-approved"
    CLIENT_DENIED = "request.client-denied"
    SENT_TO_PAYROLL = "request.sent-to-payroll"
    COMPLETED = "request.completed"


class DayPolicy(enum.StrEnum):
    """How a date range is turned into a day count."""

    CALENDAR_DAYS = "calendar-days"
    BUSINESS_DAYS = "business-days"


class LeaveType(enum.StrEnum):
    """Well-known leave types. Other values are accepted as-is."""

    ANNUAL = "annual"
    SICK = "sick"
    PERSONAL = "personal"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    BEREAVEMENT = "bereavement"
    UNPAID = "unpaid"
    STUDY = "study"


class ApprovalMethod(enum.StrEnum):
    """Channel through which the client gave its decision."""

    EMAIL = "email"
    CALL = "call"
    MEETING = "meeting"
    OFFLINE = "offline"
    SYSTEM = "system"


class RecipientRole(enum.StrEnum):
    """Audience of a notification."""

    CSP = "csp"
    CLIENT = "client"
    USER = "user"
    PAYROLL = "payroll"


class NotificationPriority(enum.StrEnum):
    NORMAL = "normal"
    HIGH = "high"
