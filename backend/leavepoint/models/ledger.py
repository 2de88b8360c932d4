# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from leavepoint.models.base import UUIDBase, _now_utc


class PTOUsageEntry(UUIDBase, table=True):
    """Append-only record of PTO consumed by a leave request."""

    __tablename__ = "pto_usage_entry"
    __table_args__ = (sa.UniqueConstraint("idempotency_key", name="uq_pto_usage_idempotency"),)

    team_member: str = Field(max_length=255, index=True)
    request_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_request.id", ondelete="CASCADE"), nullable=False),
    )
    days: int
    idempotency_key: str = Field(max_length=255)
    created_at: datetime = Field(
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
