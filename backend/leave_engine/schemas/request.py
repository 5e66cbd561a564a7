# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from leave_engine.models.enums import LeaveType, RequestStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SubmitLeavePayload(BaseModel):
    """Request body for submitting a leave application."""

    title: str = Field(min_length=1, max_length=255)
    detail: str | None = Field(default=None, max_length=2000)
    start_date: date
    end_date: date
    leave_type: str = Field(min_length=1, max_length=20)
    is_half_day: bool = False
    approver_email: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_date < self.start_date:
            msg = "end_date must be on or after start_date"
            raise ValueError(msg)
        return self


class RejectPayload(BaseModel):
    """Request body for rejecting a leave application."""

    reason: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveRequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    title: str
    detail: str | None
    start_date: date
    end_date: date
    leave_type: LeaveType
    is_half_day: bool
    requester_email: str
    approver_email: str | None
    status: RequestStatus
    working_days: float
    rejection_reason: str | None
    balance_updated: bool
    decided_at: datetime | None
    decided_by: str | None
    created_at: datetime
    updated_at: datetime | None


class LeaveRequestListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[LeaveRequestResponse]
    total: int
