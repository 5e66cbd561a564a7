"""Initial schema: balances, requests, holidays, audit log.

Revision ID: 0001
Revises:
Create Date: 2025-01-06 00:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps(with_updated_at: bool = True) -> list[sa.Column]:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)]
    if with_updated_at:
        columns.append(
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
        )
    return columns


def upgrade() -> None:
    allocation_defaults = {
        "sick": "36",
        "maternity": "3",
        "parental": "4",
        "family": "3",
        "adoption": "4",
        "study": "6",
        "wellness": "2",
    }
    allocation_columns = []
    for name, default in allocation_defaults.items():
        allocation_columns.append(sa.Column(name, sa.Float(), server_default=default, nullable=False))
        allocation_columns.append(sa.Column(f"{name}_used", sa.Float(), server_default="0", nullable=False))

    op.create_table(
        "employee_balance",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("employee_email", sa.String(length=255), nullable=False),
        sa.Column("employee_name", sa.String(length=255), nullable=False),
        sa.Column("department", sa.String(length=255), nullable=True),
        sa.Column("manager_email", sa.String(length=255), nullable=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("brought_forward", sa.Float(), server_default="0", nullable=False),
        sa.Column("accumulated_leave", sa.Float(), server_default="0", nullable=False),
        sa.Column("annual_used", sa.Float(), server_default="0", nullable=False),
        sa.Column("forfeited", sa.Float(), server_default="0", nullable=False),
        sa.Column("annual_adjustments", sa.Float(), server_default="0", nullable=False),
        sa.Column("sick_brought_forward", sa.Float(), server_default="0", nullable=False),
        *allocation_columns,
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("contract_termination_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=20), server_default="Active", nullable=False),
        sa.Column("comment", sa.String(), nullable=True),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("employee_email", "year", name="uq_balance_employee_year"),
    )
    op.create_index("ix_employee_balance_employee_email", "employee_balance", ["employee_email"])
    op.create_index("ix_employee_balance_created_at", "employee_balance", ["created_at"])
    op.create_index("ix_balance_year_status", "employee_balance", ["year", "status"])

    op.create_table(
        "leave_request",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("detail", sa.String(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("leave_type", sa.String(length=20), nullable=False),
        sa.Column("is_half_day", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("requester_email", sa.String(length=255), nullable=False),
        sa.Column("approver_email", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=20), server_default="pending", nullable=False),
        sa.Column("working_days", sa.Float(), nullable=False),
        sa.Column("rejection_reason", sa.String(), nullable=True),
        sa.Column("balance_updated", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decided_by", sa.String(length=255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_leave_request_leave_type", "leave_request", ["leave_type"])
    op.create_index("ix_leave_request_requester_email", "leave_request", ["requester_email"])
    op.create_index("ix_leave_request_status", "leave_request", ["status"])
    op.create_index("ix_leave_request_created_at", "leave_request", ["created_at"])
    op.create_index("ix_request_requester_status", "leave_request", ["requester_email", "status"])

    op.create_table(
        "holiday",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("office_status", sa.String(length=20), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("is_recurring", sa.Boolean(), nullable=False),
        *_timestamps(with_updated_at=False),
    )
    op.create_index("ix_holiday_date", "holiday", ["date"], unique=True)
    op.create_index("ix_holiday_created_at", "holiday", ["created_at"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("actor_email", sa.String(length=255), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(length=255), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
        *_timestamps(with_updated_at=False),
    )
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("holiday")
    op.drop_table("leave_request")
    op.drop_table("employee_balance")
