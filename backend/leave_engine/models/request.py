# ruff: noqa: TC003
from __future__ import annotations

from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UUIDBase
from leave_engine.models.enums import RequestStatus


class LeaveRequest(UUIDBase, TimestampMixin, table=True):
    """A submitted leave application and its approval state.

    ``working_days`` is frozen at submission. ``balance_updated`` records
    whether the approval has been charged to the balance, so the charge and
    its reversal each happen at most once.
    """

    __tablename__ = "leave_request"
    __table_args__ = (sa.Index("ix_request_requester_status", "requester_email", "status"),)

    title: str = Field(max_length=255)
    detail: str | None = None
    start_date: date
    end_date: date
    leave_type: str = Field(max_length=20, index=True)
    is_half_day: bool = Field(default=False)
    requester_email: str = Field(max_length=255, index=True)
    approver_email: str | None = Field(default=None, max_length=255)
    status: str = Field(
        default=RequestStatus.PENDING,
        max_length=20,
        index=True,
        sa_column_kwargs={"server_default": RequestStatus.PENDING.value},
    )
    working_days: float
    rejection_reason: str | None = None
    balance_updated: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})
    decided_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    decided_by: str | None = Field(default=None, max_length=255)
