# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from leave_engine.models.enums import BalanceAction, EmployeeStatus, LeaveType, LeaveUnit

# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveTypeBalance(BaseModel):
    """Balance breakdown for one leave type."""

    type: LeaveType
    unit: LeaveUnit
    used: float
    total: float
    balance: float
    accrued: float | None = None
    brought_forward: float | None = None


class BalanceRecordResponse(BaseModel):
    """A stored balance record with its derived values refreshed."""

    id: uuid.UUID
    employee_email: str
    employee_name: str
    department: str | None
    manager_email: str | None
    year: int
    brought_forward: float
    accumulated_leave: float
    annual_used: float
    forfeited: float
    annual_adjustments: float
    sick_brought_forward: float
    sick: float
    sick_used: float
    maternity: float
    maternity_used: float
    parental: float
    parental_used: float
    family: float
    family_used: float
    adoption: float
    adoption_used: float
    study: float
    study_used: float
    wellness: float
    wellness_used: float
    start_date: date | None
    contract_termination_date: date | None
    status: EmployeeStatus
    comment: str | None
    version: int
    updated_at: datetime | None


class EmployeeBalanceResponse(BaseModel):
    """A record plus its per-type balances."""

    record: BalanceRecordResponse
    balances: list[LeaveTypeBalance]
    current_leave_balance: float
    termination_balance: float | None = None


class BalanceListResponse(BaseModel):
    items: list[BalanceRecordResponse]
    total: int


class TerminationBalanceResponse(BaseModel):
    employee_email: str
    year: int
    termination_date: date
    termination_balance: float
    status: EmployeeStatus


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class ApplyLeaveEffectRequest(BaseModel):
    """Charge or restore usage for an approved or cancelled leave."""

    employee_email: str = Field(min_length=3, max_length=255)
    leave_type: str = Field(min_length=1, max_length=20)
    days: float = Field(gt=0)
    action: BalanceAction
    year: int | None = Field(default=None, ge=1900, le=9999)


class CreateBalanceRequest(BaseModel):
    """Register an employee's balance record for a year."""

    employee_email: str = Field(min_length=3, max_length=255)
    employee_name: str = Field(min_length=1, max_length=255)
    department: str | None = Field(default=None, max_length=255)
    manager_email: str | None = Field(default=None, max_length=255)
    year: int | None = Field(default=None, ge=1900, le=9999)
    brought_forward: float = Field(default=0.0, ge=0)
    start_date: date | None = None
    contract_termination_date: date | None = None

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if (
            self.start_date is not None
            and self.contract_termination_date is not None
            and self.contract_termination_date < self.start_date
        ):
            msg = "contract_termination_date must not be before start_date"
            raise ValueError(msg)
        return self


class UpdateBalanceRequest(BaseModel):
    """Admin edit of a balance record. Omitted fields are left unchanged."""

    employee_name: str | None = Field(default=None, min_length=1, max_length=255)
    department: str | None = Field(default=None, max_length=255)
    manager_email: str | None = Field(default=None, max_length=255)
    brought_forward: float | None = Field(default=None, ge=0)
    annual_used: float | None = Field(default=None, ge=0)
    forfeited: float | None = Field(default=None, ge=0)
    annual_adjustments: float | None = None
    sick_brought_forward: float | None = Field(default=None, ge=0)
    sick: float | None = Field(default=None, ge=0)
    sick_used: float | None = Field(default=None, ge=0)
    maternity: float | None = Field(default=None, ge=0)
    maternity_used: float | None = Field(default=None, ge=0)
    parental: float | None = Field(default=None, ge=0)
    parental_used: float | None = Field(default=None, ge=0)
    family: float | None = Field(default=None, ge=0)
    family_used: float | None = Field(default=None, ge=0)
    adoption: float | None = Field(default=None, ge=0)
    adoption_used: float | None = Field(default=None, ge=0)
    study: float | None = Field(default=None, ge=0)
    study_used: float | None = Field(default=None, ge=0)
    wellness: float | None = Field(default=None, ge=0)
    wellness_used: float | None = Field(default=None, ge=0)
    start_date: date | None = None
    contract_termination_date: date | None = None
    comment: str | None = Field(default=None, max_length=1000)
