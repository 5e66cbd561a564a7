# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Query

from leave_engine.api.deps import AdminDep
from leave_engine.db import SessionDep
from leave_engine.schemas.report import AuditLogListResponse, BalanceSummaryResponse
from leave_engine.services import report as report_service

reports_router = APIRouter(tags=["reports"])


@reports_router.get("/audit", response_model=AuditLogListResponse)
async def query_audit_log(
    session: SessionDep,
    auth: AdminDep,
    entity_type: str | None = Query(default=None),
    entity_id: str | None = Query(default=None),
    action: str | None = Query(default=None),
    actor_email: str | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogListResponse:
    """Query audit log entries with optional filters (admin only)."""
    return await report_service.query_audit_log(
        session,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        actor_email=actor_email,
        start_date=start_date,
        end_date=end_date,
        offset=offset,
        limit=limit,
    )


@reports_router.get("/reports/balances", response_model=BalanceSummaryResponse)
async def get_balance_summary(
    session: SessionDep,
    auth: AdminDep,
    year: int | None = Query(default=None, ge=1900, le=9999),
    department: str | None = Query(default=None),
) -> BalanceSummaryResponse:
    """Every employee's balances for a year (admin only)."""
    return await report_service.get_balance_summary(
        session, year or date.today().year, department=department
    )
