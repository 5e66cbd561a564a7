from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leave_engine.exceptions import ConflictError, NotFoundError, ValidationError
from leave_engine.models.balance import EmployeeBalance
from leave_engine.models.enums import AuditAction, AuditEntityType, BalanceAction, EmployeeStatus, LeaveType
from leave_engine.schemas.balance import (
    BalanceListResponse,
    BalanceRecordResponse,
    EmployeeBalanceResponse,
    LeaveTypeBalance,
    TerminationBalanceResponse,
)
from leave_engine.services.accrual import (
    MONTHLY_ACCRUAL_RATE,
    calculate_accumulated_leave,
    reconcile_accumulated_leave,
)
from leave_engine.services.audit import model_to_audit_dict, write_audit_log
from leave_engine.services.policy import POLICIES, get_policy

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.schemas.auth import AuthContext
    from leave_engine.schemas.balance import CreateBalanceRequest, UpdateBalanceRequest

logger = logging.getLogger(__name__)

# Fields an admin edit may explicitly clear.
_NULLABLE_FIELDS = {"department", "manager_email", "start_date", "contract_termination_date", "comment"}


# ---------------------------------------------------------------------------
# Pure calculations
# ---------------------------------------------------------------------------


def reference_date_for(record: EmployeeBalance, today: date | None = None) -> date:
    """The date a record's accrual is measured at.

    Today for the current year, Dec 31 for past years and Jan 1 for future ones.
    """
    today = today or date.today()
    if record.year < today.year:
        return date(record.year, 12, 31)
    if record.year > today.year:
        return date(record.year, 1, 1)
    return today


def accrued_to_date(record: EmployeeBalance, today: date | None = None) -> float:
    return calculate_accumulated_leave(
        reference_date_for(record, today),
        record.contract_termination_date,
        record.start_date,
    )


def annual_balance(record: EmployeeBalance, accumulated: float) -> float:
    """Brought forward plus ``accumulated``, less usage, forfeiture and adjustments."""
    return round(
        record.brought_forward
        + accumulated
        - record.annual_used
        - record.forfeited
        - record.annual_adjustments,
        3,
    )


def current_balance(record: EmployeeBalance, leave_type: LeaveType | str, today: date | None = None) -> float:
    """Remaining balance for one leave type, in the type's unit.

    Annual leave is recomputed from the accrual engine; other types are their
    yearly allocation minus usage. The result is not clamped at zero.
    """
    policy = get_policy(leave_type)
    if policy.allocation_field is None:
        return annual_balance(record, accrued_to_date(record, today))

    allocation = getattr(record, policy.allocation_field)
    used = getattr(record, policy.used_field)
    return round(allocation - used, 3)


def all_balances(record: EmployeeBalance, today: date | None = None) -> dict[LeaveType, float]:
    """Remaining balance for every leave type."""
    return {leave_type: current_balance(record, leave_type, today) for leave_type in POLICIES}


def has_sufficient_balance(
    record: EmployeeBalance,
    leave_type: LeaveType | str,
    requested: float,
    today: date | None = None,
) -> bool:
    return current_balance(record, leave_type, today) >= requested


def termination_balance(
    record: EmployeeBalance,
    termination_date: date,
    today: date | None = None,
) -> float:
    """Annual balance an employee leaves with on ``termination_date``.

    Accrual up to the termination date plus a day-prorated credit for the
    termination month.
    """
    accumulated = calculate_accumulated_leave(
        reference_date_for(record, today),
        termination_date,
        record.start_date,
    )
    days_in_month = calendar.monthrange(termination_date.year, termination_date.month)[1]
    final_month_credit = MONTHLY_ACCRUAL_RATE * termination_date.day / days_in_month
    return round(annual_balance(record, accumulated) + final_month_credit, 3)


def employee_status(termination_date: date | None, today: date | None = None) -> EmployeeStatus:
    """Inactive once the contract termination date has passed."""
    today = today or date.today()
    if termination_date is not None and termination_date < today:
        return EmployeeStatus.INACTIVE
    return EmployeeStatus.ACTIVE


def apply_leave_effect(
    record: EmployeeBalance,
    leave_type: LeaveType | str,
    days: float,
    action: BalanceAction,
) -> tuple[float, float]:
    """Charge (approve) or restore (cancel) usage on the record.

    Returns the (old, new) value of the type's used counter.
    """
    policy = get_policy(leave_type)
    old_used = getattr(record, policy.used_field)
    delta = days if action == BalanceAction.APPROVE else -days
    new_used = round(old_used + delta, 3)
    setattr(record, policy.used_field, new_used)
    return old_used, new_used


def refresh_derived_fields(record: EmployeeBalance, today: date | None = None) -> bool:
    """Recompute the accumulated-leave and status caches in place.

    Returns True when either cache was stale and has been rewritten.
    """
    changed = False

    computed = accrued_to_date(record, today)
    corrected = reconcile_accumulated_leave(record.accumulated_leave, computed)
    if corrected is not None:
        logger.info(
            "Reconciled accumulated leave for %s year=%s: %s -> %s",
            record.employee_email,
            record.year,
            record.accumulated_leave,
            corrected,
        )
        record.accumulated_leave = corrected
        changed = True

    status = employee_status(record.contract_termination_date, today)
    if record.status != status:
        logger.info(
            "Status for %s year=%s changed: %s -> %s",
            record.employee_email,
            record.year,
            record.status,
            status.value,
        )
        record.status = status.value
        changed = True

    return changed


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_record_response(record: EmployeeBalance) -> BalanceRecordResponse:
    return BalanceRecordResponse.model_validate(record, from_attributes=True)


def _build_type_balances(record: EmployeeBalance, today: date | None = None) -> list[LeaveTypeBalance]:
    items: list[LeaveTypeBalance] = []
    for leave_type, policy in POLICIES.items():
        used = getattr(record, policy.used_field)
        if policy.allocation_field is None:
            accrued = accrued_to_date(record, today)
            items.append(
                LeaveTypeBalance(
                    type=leave_type,
                    unit=policy.unit,
                    used=used,
                    total=round(record.brought_forward + accrued, 3),
                    balance=current_balance(record, leave_type, today),
                    accrued=accrued,
                    brought_forward=record.brought_forward,
                )
            )
        else:
            allocation = getattr(record, policy.allocation_field)
            items.append(
                LeaveTypeBalance(
                    type=leave_type,
                    unit=policy.unit,
                    used=used,
                    total=allocation,
                    balance=current_balance(record, leave_type, today),
                )
            )
    return items


async def _get_balance_for_update(session: AsyncSession, employee_email: str, year: int) -> EmployeeBalance:
    """Get the balance record with a FOR UPDATE lock, or raise 404."""
    result = await session.execute(
        select(EmployeeBalance)
        .where(
            col(EmployeeBalance.employee_email) == employee_email,
            col(EmployeeBalance.year) == year,
        )
        .with_for_update()
    )
    record = result.scalar_one_or_none()
    if record is None:
        raise NotFoundError(f"Balance not found for {employee_email} in {year}")
    return record


async def get_balance_record(session: AsyncSession, employee_email: str, year: int) -> EmployeeBalance:
    """Get the balance record for an employee and year, or raise 404."""
    result = await session.execute(
        select(EmployeeBalance).where(
            col(EmployeeBalance.employee_email) == employee_email,
            col(EmployeeBalance.year) == year,
        )
    )
    record = result.scalar_one_or_none()
    if record is None:
        raise NotFoundError(f"Balance not found for {employee_email} in {year}")
    return record


async def refresh_balance_record(
    session: AsyncSession,
    record: EmployeeBalance,
    today: date | None = None,
) -> bool:
    """Write back stale derived caches. Returns True if anything was persisted."""
    if not refresh_derived_fields(record, today):
        return False
    session.add(record)
    await session.commit()
    await session.refresh(record)
    return True


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_employee_balances(
    session: AsyncSession,
    employee_email: str,
    year: int | None = None,
    today: date | None = None,
) -> EmployeeBalanceResponse:
    """Per-type balances for one employee and year, refreshing stale caches."""
    today = today or date.today()
    year = year or today.year

    record = await get_balance_record(session, employee_email, year)
    await refresh_balance_record(session, record, today)

    return EmployeeBalanceResponse(
        record=_build_record_response(record),
        balances=_build_type_balances(record, today),
        current_leave_balance=current_balance(record, LeaveType.ANNUAL, today),
        termination_balance=(
            termination_balance(record, record.contract_termination_date, today)
            if record.contract_termination_date is not None
            else None
        ),
    )


async def list_balances(
    session: AsyncSession,
    year: int,
    offset: int = 0,
    limit: int = 100,
) -> BalanceListResponse:
    """All balance records for a year, ordered by employee name."""
    base_filter = [col(EmployeeBalance.year) == year]

    count_result = await session.execute(select(func.count()).select_from(EmployeeBalance).where(*base_filter))
    total = count_result.scalar_one()

    result = await session.execute(
        select(EmployeeBalance)
        .where(*base_filter)
        .order_by(col(EmployeeBalance.employee_name), col(EmployeeBalance.employee_email))
        .offset(offset)
        .limit(limit)
    )
    records = list(result.scalars().all())

    return BalanceListResponse(items=[_build_record_response(r) for r in records], total=total)


async def get_termination_balance(
    session: AsyncSession,
    employee_email: str,
    termination_date: date,
    year: int | None = None,
    today: date | None = None,
) -> TerminationBalanceResponse:
    """Projected leaving balance for a termination date, without persisting it."""
    today = today or date.today()
    year = year or termination_date.year

    record = await get_balance_record(session, employee_email, year)
    return TerminationBalanceResponse(
        employee_email=record.employee_email,
        year=record.year,
        termination_date=termination_date,
        termination_balance=termination_balance(record, termination_date, today),
        status=employee_status(termination_date, today),
    )


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------


async def create_balance(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateBalanceRequest,
    today: date | None = None,
) -> BalanceRecordResponse:
    """Create an employee's balance record for a year."""
    today = today or date.today()
    year = payload.year or today.year
    record = EmployeeBalance(
        employee_email=payload.employee_email.strip().lower(),
        employee_name=payload.employee_name,
        department=payload.department,
        manager_email=payload.manager_email,
        year=year,
        brought_forward=payload.brought_forward,
        start_date=payload.start_date,
        contract_termination_date=payload.contract_termination_date,
    )
    refresh_derived_fields(record, today)
    session.add(record)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError(f"Balance already exists for {record.employee_email} in {year}") from None

    await write_audit_log(
        session,
        actor_email=auth.email,
        entity_type=AuditEntityType.BALANCE,
        entity_id=record.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(record),
    )

    await session.commit()
    await session.refresh(record)
    return _build_record_response(record)


async def update_balance(
    session: AsyncSession,
    auth: AuthContext,
    employee_email: str,
    year: int,
    payload: UpdateBalanceRequest,
    today: date | None = None,
) -> BalanceRecordResponse:
    """Apply an admin edit to a balance record."""
    record = await _get_balance_for_update(session, employee_email, year)
    changes = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key in _NULLABLE_FIELDS
    }
    if not changes:
        return _build_record_response(record)

    before = model_to_audit_dict(record, list(changes))
    for field_name, value in changes.items():
        setattr(record, field_name, value)
    refresh_derived_fields(record, today)
    record.version += 1

    await write_audit_log(
        session,
        actor_email=auth.email,
        entity_type=AuditEntityType.BALANCE,
        entity_id=record.id,
        action=AuditAction.UPDATE,
        before_json=before,
        after_json=model_to_audit_dict(record, list(changes)),
    )

    await session.commit()
    await session.refresh(record)
    return _build_record_response(record)


async def apply_leave_effect_for_employee(
    session: AsyncSession,
    *,
    actor_email: str,
    employee_email: str,
    year: int,
    leave_type: LeaveType | str,
    days: float,
    action: BalanceAction,
    commit: bool = True,
) -> EmployeeBalance:
    """Lock the employee's balance row and charge or restore usage.

    Restoring more than the recorded usage is rejected. With ``commit=False``
    the change is only flushed, so the caller can update related state in the
    same transaction.
    """
    policy = get_policy(leave_type)
    record = await _get_balance_for_update(session, employee_email, year)

    used = getattr(record, policy.used_field)
    if action == BalanceAction.CANCEL and round(used - days, 3) < 0:
        raise ValidationError(
            f"Cannot restore {days} {policy.unit.value} of {policy.leave_type.value} leave: only {used} used"
        )

    old_used, new_used = apply_leave_effect(record, policy.leave_type, days, action)
    record.version += 1
    session.add(record)

    await write_audit_log(
        session,
        actor_email=actor_email,
        entity_type=AuditEntityType.BALANCE,
        entity_id=record.id,
        action=AuditAction.APPROVE if action == BalanceAction.APPROVE else AuditAction.CANCEL,
        before_json={policy.used_field: old_used},
        after_json={policy.used_field: new_used, "days": days, "leave_type": policy.leave_type.value},
    )

    if commit:
        await session.commit()
        await session.refresh(record)
    else:
        await session.flush()

    logger.info(
        "Balance %s for %s year=%s: %s %s -> %s",
        action.value,
        employee_email,
        year,
        policy.used_field,
        old_used,
        new_used,
    )
    return record


# ---------------------------------------------------------------------------
# Scheduled reconciliation
# ---------------------------------------------------------------------------


@dataclass
class ReconciliationResult:
    """Result of a cache reconciliation run."""

    year: int
    processed: int = 0
    corrected: int = 0


async def reconcile_year(
    session: AsyncSession,
    year: int | None = None,
    today: date | None = None,
) -> ReconciliationResult:
    """Refresh accumulated-leave and status caches for every record in a year."""
    today = today or date.today()
    result = ReconciliationResult(year=year or today.year)

    records_result = await session.execute(
        select(EmployeeBalance)
        .where(col(EmployeeBalance.year) == result.year)
        .order_by(col(EmployeeBalance.employee_email))
    )
    for record in records_result.scalars().all():
        result.processed += 1
        if refresh_derived_fields(record, today):
            session.add(record)
            result.corrected += 1

    await session.commit()
    return result
