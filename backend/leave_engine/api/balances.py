# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from leave_engine.api.deps import AdminDep, ApproverDep, AuthDep, reject_during_maintenance
from leave_engine.db import SessionDep
from leave_engine.exceptions import ForbiddenError
from leave_engine.schemas.auth import AuthContext
from leave_engine.schemas.balance import (
    ApplyLeaveEffectRequest,
    BalanceListResponse,
    BalanceRecordResponse,
    CreateBalanceRequest,
    EmployeeBalanceResponse,
    TerminationBalanceResponse,
    UpdateBalanceRequest,
)
from leave_engine.services import balance as balance_service

balances_router = APIRouter(prefix="/balances", tags=["balances"])


def _check_can_view(auth: AuthContext, employee_email: str) -> None:
    if not auth.can_approve and auth.email != employee_email.lower():
        raise ForbiddenError("Employees may only view their own balance")


@balances_router.get("", response_model=BalanceListResponse)
async def list_balances(
    session: SessionDep,
    auth: AdminDep,
    year: int | None = Query(default=None, ge=1900, le=9999),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
) -> BalanceListResponse:
    """List every balance record for a year (admin only)."""
    return await balance_service.list_balances(session, year or date.today().year, offset, limit)


@balances_router.post(
    "",
    response_model=BalanceRecordResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(reject_during_maintenance)],
)
async def create_balance(
    payload: CreateBalanceRequest,
    session: SessionDep,
    auth: AdminDep,
) -> BalanceRecordResponse:
    """Create an employee's balance record (admin only)."""
    return await balance_service.create_balance(session, auth, payload)


@balances_router.put(
    "/update",
    response_model=BalanceRecordResponse,
    dependencies=[Depends(reject_during_maintenance)],
)
async def apply_leave_effect(
    payload: ApplyLeaveEffectRequest,
    session: SessionDep,
    auth: ApproverDep,
) -> BalanceRecordResponse:
    """Charge or restore leave usage on an employee's balance (manager or admin)."""
    record = await balance_service.apply_leave_effect_for_employee(
        session,
        actor_email=auth.email,
        employee_email=payload.employee_email.lower(),
        year=payload.year or date.today().year,
        leave_type=payload.leave_type,
        days=payload.days,
        action=payload.action,
    )
    return BalanceRecordResponse.model_validate(record, from_attributes=True)


@balances_router.get("/{employee_email}", response_model=EmployeeBalanceResponse)
async def get_employee_balances(
    employee_email: str,
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None, ge=1900, le=9999),
) -> EmployeeBalanceResponse:
    """Get an employee's per-type balances for a year."""
    _check_can_view(auth, employee_email)
    return await balance_service.get_employee_balances(session, employee_email.lower(), year)


@balances_router.patch(
    "/{employee_email}",
    response_model=BalanceRecordResponse,
    dependencies=[Depends(reject_during_maintenance)],
)
async def update_balance(
    employee_email: str,
    payload: UpdateBalanceRequest,
    session: SessionDep,
    auth: AdminDep,
    year: int | None = Query(default=None, ge=1900, le=9999),
) -> BalanceRecordResponse:
    """Edit an employee's balance record (admin only)."""
    return await balance_service.update_balance(
        session, auth, employee_email.lower(), year or date.today().year, payload
    )


@balances_router.get("/{employee_email}/termination", response_model=TerminationBalanceResponse)
async def get_termination_balance(
    employee_email: str,
    session: SessionDep,
    auth: AuthDep,
    termination_date: date = Query(),
    year: int | None = Query(default=None, ge=1900, le=9999),
) -> TerminationBalanceResponse:
    """Project an employee's leaving balance for a termination date."""
    _check_can_view(auth, employee_email)
    return await balance_service.get_termination_balance(session, employee_email.lower(), termination_date, year)
