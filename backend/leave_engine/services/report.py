"""Reporting service: audit log queries and balance summaries."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leave_engine.models.audit import AuditLog
from leave_engine.models.balance import EmployeeBalance
from leave_engine.schemas.report import (
    AuditLogEntryResponse,
    AuditLogListResponse,
    BalanceSummaryResponse,
    EmployeeBalanceSummary,
)
from leave_engine.services.balance import all_balances

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def query_audit_log(
    session: AsyncSession,
    *,
    entity_type: str | None = None,
    entity_id: str | None = None,
    action: str | None = None,
    actor_email: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> AuditLogListResponse:
    """Query audit log entries with optional filters."""
    filters = []

    if entity_type is not None:
        filters.append(col(AuditLog.entity_type) == entity_type)
    if entity_id is not None:
        filters.append(col(AuditLog.entity_id) == entity_id)
    if action is not None:
        filters.append(col(AuditLog.action) == action)
    if actor_email is not None:
        filters.append(col(AuditLog.actor_email) == actor_email)
    if start_date is not None:
        filters.append(col(AuditLog.created_at) >= datetime.combine(start_date, time.min))
    if end_date is not None:
        filters.append(col(AuditLog.created_at) < datetime.combine(end_date + timedelta(days=1), time.min))

    count_result = await session.execute(select(func.count()).select_from(AuditLog).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(AuditLog).where(*filters).order_by(col(AuditLog.created_at).desc()).offset(offset).limit(limit)
    )
    entries = list(result.scalars().all())

    return AuditLogListResponse(
        items=[
            AuditLogEntryResponse(
                id=e.id,
                actor_email=e.actor_email,
                entity_type=e.entity_type,
                entity_id=e.entity_id,
                action=e.action,
                before_json=e.before_json,
                after_json=e.after_json,
                created_at=e.created_at,
            )
            for e in entries
        ],
        total=total,
    )


async def get_balance_summary(
    session: AsyncSession,
    year: int,
    *,
    department: str | None = None,
    today: date | None = None,
) -> BalanceSummaryResponse:
    """Every leave-type balance for every employee in a year."""
    filters = [col(EmployeeBalance.year) == year]
    if department is not None:
        filters.append(col(EmployeeBalance.department) == department)

    result = await session.execute(
        select(EmployeeBalance)
        .where(*filters)
        .order_by(col(EmployeeBalance.employee_name), col(EmployeeBalance.employee_email))
    )
    records = list(result.scalars().all())

    items = [
        EmployeeBalanceSummary(
            employee_email=r.employee_email,
            employee_name=r.employee_name,
            department=r.department,
            status=r.status,
            balances={leave_type.value: value for leave_type, value in all_balances(r, today).items()},
        )
        for r in records
    ]
    return BalanceSummaryResponse(year=year, items=items, total=len(items))
