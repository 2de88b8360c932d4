"""leave lifecycle tables

Revision ID: 0001_leave_lifecycle
Revises:
Create Date: 2025-06-01 09:00:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001_leave_lifecycle"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "leave_request",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("team_member", sa.String(length=255), nullable=False),
        sa.Column("team_member_email", sa.String(length=255), nullable=True),
        sa.Column("leave_type", sa.String(length=50), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("days", sa.Integer(), nullable=False),
        sa.Column("day_policy", sa.String(length=20), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.Column("submitted_by", sa.String(length=255), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("assigned_to", sa.String(length=255), nullable=True),
        sa.Column("assigned_to_email", sa.String(length=255), nullable=True),
        sa.Column("client_name", sa.String(length=255), nullable=True),
        sa.Column("sick_note_ref", sa.String(length=1024), nullable=True),
        sa.Column("balance_sufficient", sa.Boolean(), nullable=False),
        sa.Column("pto_balance_snapshot", sa.JSON(), nullable=True),
        sa.Column("csp_reviewed_by", sa.String(length=255), nullable=True),
        sa.Column("csp_reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("csp_notes", sa.String(), nullable=True),
        sa.Column("client_decided_by", sa.String(length=255), nullable=True),
        sa.Column("client_decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("client_approval_method", sa.String(length=50), nullable=True),
        sa.Column("client_notes", sa.String(), nullable=True),
        sa.Column("sent_to_payroll_by", sa.String(length=255), nullable=True),
        sa.Column("sent_to_payroll_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_leave_request_team_member", "leave_request", ["team_member"])
    op.create_index("ix_leave_request_status", "leave_request", ["status"])
    op.create_index("ix_leave_request_assignee", "leave_request", ["assigned_to_email"])

    op.create_table(
        "leave_audit_entry",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("request_id", sa.Uuid(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("actor", sa.String(length=255), nullable=False),
        sa.Column("note", sa.String(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("dedup_bucket", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["request_id"], ["leave_request.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("request_id", "sequence", name="uq_audit_request_sequence"),
        sa.UniqueConstraint("request_id", "action", "dedup_bucket", name="uq_audit_idempotency"),
    )
    op.create_index("ix_leave_audit_entry_request_id", "leave_audit_entry", ["request_id"])

    op.create_table(
        "pto_balance",
        sa.Column("team_member", sa.String(length=255), nullable=False),
        sa.Column("annual_pto", sa.Integer(), server_default="0", nullable=False),
        sa.Column("used_pto", sa.Integer(), server_default="0", nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.PrimaryKeyConstraint("team_member"),
    )

    op.create_table(
        "pto_usage_entry",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("team_member", sa.String(length=255), nullable=False),
        sa.Column("request_id", sa.Uuid(), nullable=False),
        sa.Column("days", sa.Integer(), nullable=False),
        sa.Column("idempotency_key", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["request_id"], ["leave_request.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("idempotency_key", name="uq_pto_usage_idempotency"),
    )
    op.create_index("ix_pto_usage_entry_team_member", "pto_usage_entry", ["team_member"])


def downgrade() -> None:
    op.drop_index("ix_pto_usage_entry_team_member", table_name="pto_usage_entry")
    op.drop_table("pto_usage_entry")
    op.drop_table("pto_balance")
    op.drop_index("ix_leave_audit_entry_request_id", table_name="leave_audit_entry")
    op.drop_table("leave_audit_entry")
    op.drop_index("ix_leave_request_assignee", table_name="leave_request")
    op.drop_index("ix_leave_request_status", table_name="leave_request")
    op.drop_index("ix_leave_request_team_member", table_name="leave_request")
    op.drop_table("leave_request")
