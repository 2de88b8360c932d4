# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from leavepoint.models.base import UUIDBase


class LeaveAuditEntry(UUIDBase, table=True):
    """Immutable history entry produced by exactly one lifecycle transition."""

    __tablename__ = "leave_audit_entry"
    __table_args__ = (
        sa.UniqueConstraint("request_id", "sequence", name="uq_audit_request_sequence"),
        sa.UniqueConstraint("request_id", "action", "dedup_bucket", name="uq_audit_idempotency"),
    )

    request_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("leave_request.id", ondelete="CASCADE"), nullable=False, index=True
        ),
    )
    sequence: int
    action: str = Field(max_length=50)
    actor: str = Field(max_length=255)
    note: str | None = None
    timestamp: datetime = Field(sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    dedup_bucket: int
