# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel


class AuditLogEntryResponse(BaseModel):
    """Response schema for a single audit log entry."""

    id: uuid.UUID
    actor_email: str
    entity_type: str
    entity_id: str
    action: str
    before_json: dict[str, Any] | None
    after_json: dict[str, Any] | None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    """Paginated list of audit log entries."""

    items: list[AuditLogEntryResponse]
    total: int


class EmployeeBalanceSummary(BaseModel):
    """All leave-type balances for one employee in one year."""

    employee_email: str
    employee_name: str
    department: str | None
    status: str
    balances: dict[str, float]


class BalanceSummaryResponse(BaseModel):
    """Balance summary across all employees for a year."""

    year: int
    items: list[EmployeeBalanceSummary]
    total: int
