# ruff: noqa: TC003
from __future__ import annotations

from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UUIDBase
from leave_engine.models.enums import EmployeeStatus


class EmployeeBalance(UUIDBase, TimestampMixin, table=True):
    """One employee's leave balances for one calendar year.

    ``accumulated_leave`` and ``status`` are caches of derived values; the
    balance service recomputes them on every read and writes them back when
    they drift. Allocation defaults mirror the leave-type registry in
    ``leave_engine.services.policy``.
    """

    __tablename__ = "employee_balance"
    __table_args__ = (
        sa.UniqueConstraint("employee_email", "year", name="uq_balance_employee_year"),
        sa.Index("ix_balance_year_status", "year", "status"),
    )

    employee_email: str = Field(max_length=255, index=True)
    employee_name: str = Field(max_length=255)
    department: str | None = Field(default=None, max_length=255)
    manager_email: str | None = Field(default=None, max_length=255)
    year: int

    # Annual leave
    brought_forward: float = Field(default=0.0)
    accumulated_leave: float = Field(default=0.0)
    annual_used: float = Field(default=0.0)
    forfeited: float = Field(default=0.0)
    annual_adjustments: float = Field(default=0.0)

    # Fixed yearly allocations and their usage counters
    sick_brought_forward: float = Field(default=0.0)
    sick: float = Field(default=36.0)
    sick_used: float = Field(default=0.0)
    maternity: float = Field(default=3.0)
    maternity_used: float = Field(default=0.0)
    parental: float = Field(default=4.0)
    parental_used: float = Field(default=0.0)
    family: float = Field(default=3.0)
    family_used: float = Field(default=0.0)
    adoption: float = Field(default=4.0)
    adoption_used: float = Field(default=0.0)
    study: float = Field(default=6.0)
    study_used: float = Field(default=0.0)
    wellness: float = Field(default=2.0)
    wellness_used: float = Field(default=0.0)

    start_date: date | None = None
    contract_termination_date: date | None = None
    status: str = Field(
        default=EmployeeStatus.ACTIVE,
        max_length=20,
        sa_column_kwargs={"server_default": EmployeeStatus.ACTIVE.value},
    )
    comment: str | None = None
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
