"""Year-end rollover.

Copies every active employee's balance record from one year into the next,
carrying the unused annual balance forward as the new year's brought-forward
amount. Source records keep their counters as the backup of the closed year;
only their derived caches are refreshed before the carry-forward is taken.
The whole run is one transaction: either every employee rolls over or none do.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select
from sqlmodel import col

from leave_engine.exceptions import AppError, ConflictError, NotFoundError, ValidationError
from leave_engine.models.balance import EmployeeBalance
from leave_engine.models.enums import AuditAction, AuditEntityType, EmployeeStatus
from leave_engine.schemas.rollover import BackupStatusResponse, RolloverPreviewItem, RolloverPreviewResponse
from leave_engine.services.audit import write_audit_log
from leave_engine.services.balance import accrued_to_date, annual_balance, refresh_derived_fields
from leave_engine.services.policy import POLICIES

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


@dataclass
class RolloverResult:
    """Result of a rollover run."""

    from_year: int
    to_year: int
    employees_processed: int = 0
    backup_records_preserved: int = 0
    new_records_created: int = 0


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def new_brought_forward(record: EmployeeBalance, accumulated: float | None = None) -> float:
    """Unused annual balance carried into the next year, never negative.

    ``accumulated`` defaults to the record's stored accumulated leave, so
    callers must refresh that cache first or pass a recomputed value.
    """
    if accumulated is None:
        accumulated = record.accumulated_leave
    return max(0.0, annual_balance(record, accumulated))


def build_next_year_record(record: EmployeeBalance, to_year: int) -> EmployeeBalance:
    """The next year's record for an employee.

    Annual counters start from zero. Sick leave runs on a multi-year cycle, so
    its allocation, usage and brought-forward amount are carried. Every other
    allocation is carried with its usage reset.
    """
    rolled = EmployeeBalance(
        employee_email=record.employee_email,
        employee_name=record.employee_name,
        department=record.department,
        manager_email=record.manager_email,
        year=to_year,
        brought_forward=new_brought_forward(record),
        accumulated_leave=0.0,
        annual_used=0.0,
        forfeited=0.0,
        annual_adjustments=0.0,
        start_date=record.start_date,
        contract_termination_date=record.contract_termination_date,
        status=record.status,
        comment=f"Rolled over from {record.year}",
    )

    for policy in POLICIES.values():
        if policy.allocation_field is None:
            continue
        setattr(rolled, policy.allocation_field, getattr(record, policy.allocation_field))
        if not policy.resets_on_rollover:
            setattr(rolled, policy.used_field, getattr(record, policy.used_field))
    rolled.sick_brought_forward = record.sick_brought_forward

    return rolled


def _validate_years(from_year: int, to_year: int) -> None:
    if to_year <= from_year:
        raise ValidationError(f"Target year {to_year} must be after source year {from_year}")


def _active_filter(year: int, today: date) -> list:
    return [
        col(EmployeeBalance.year) == year,
        or_(
            col(EmployeeBalance.contract_termination_date).is_(None),
            col(EmployeeBalance.contract_termination_date) >= today,
        ),
    ]


async def _count_year(session: AsyncSession, year: int) -> int:
    result = await session.execute(
        select(func.count()).select_from(EmployeeBalance).where(col(EmployeeBalance.year) == year)
    )
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Rollover
# ---------------------------------------------------------------------------


async def run_rollover(
    session: AsyncSession,
    actor_email: str,
    from_year: int,
    to_year: int,
    today: date | None = None,
) -> RolloverResult:
    """Roll every active employee from ``from_year`` into ``to_year``.

    Flow:
    1. Validate years; refuse if ``to_year`` already has records
    2. Lock the active source records
    3. Refresh each source's derived caches, then insert its next-year record
    4. Verify the source year's record count is unchanged
    5. Audit, commit

    A failure once inserts have started rolls the whole run back and is re-raised.
    """
    today = today or date.today()
    _validate_years(from_year, to_year)

    result = RolloverResult(from_year=from_year, to_year=to_year)

    if await _count_year(session, to_year) > 0:
        raise ConflictError(f"Balance records for {to_year} already exist")

    backup_count = await _count_year(session, from_year)

    source_result = await session.execute(
        select(EmployeeBalance)
        .where(*_active_filter(from_year, today))
        .order_by(col(EmployeeBalance.employee_email))
        .with_for_update()
    )
    sources = list(source_result.scalars().all())
    if not sources:
        raise NotFoundError(f"No active balance records found for {from_year}")

    try:
        for source in sources:
            if refresh_derived_fields(source, today):
                session.add(source)
            session.add(build_next_year_record(source, to_year))
            result.employees_processed += 1
        await session.flush()

        result.new_records_created = await _count_year(session, to_year)
        result.backup_records_preserved = await _count_year(session, from_year)
        if result.backup_records_preserved != backup_count:
            msg = (
                f"Source records for {from_year} changed during rollover: "
                f"expected {backup_count}, found {result.backup_records_preserved}"
            )
            raise AppError(msg)

        await write_audit_log(
            session,
            actor_email=actor_email,
            entity_type=AuditEntityType.ROLLOVER,
            entity_id=f"{from_year}-{to_year}",
            action=AuditAction.ROLLOVER,
            after_json={
                "operation": "year_rollover",
                "from_year": from_year,
                "to_year": to_year,
                "employees_processed": result.employees_processed,
                "backup_records_preserved": result.backup_records_preserved,
                "new_records_created": result.new_records_created,
            },
        )

        await session.commit()
    except Exception:
        await session.rollback()
        logger.exception("Rollover %s -> %s failed, rolled back", from_year, to_year)
        raise

    logger.info(
        "Rollover %s -> %s complete: %s employees, %s backup records preserved",
        from_year,
        to_year,
        result.employees_processed,
        result.backup_records_preserved,
    )
    return result


async def preview_rollover(
    session: AsyncSession,
    from_year: int,
    to_year: int,
    today: date | None = None,
) -> RolloverPreviewResponse:
    """What a rollover would carry forward, without changing anything."""
    today = today or date.today()
    _validate_years(from_year, to_year)

    result = await session.execute(
        select(EmployeeBalance)
        .where(*_active_filter(from_year, today))
        .order_by(col(EmployeeBalance.employee_name), col(EmployeeBalance.employee_email))
    )
    records = list(result.scalars().all())

    items = []
    for r in records:
        accrued = accrued_to_date(r, today)
        items.append(
            RolloverPreviewItem(
                employee_email=r.employee_email,
                employee_name=r.employee_name,
                department=r.department,
                brought_forward=r.brought_forward,
                accumulated_leave=accrued,
                annual_used=r.annual_used,
                forfeited=r.forfeited,
                annual_adjustments=r.annual_adjustments,
                current_balance=annual_balance(r, accrued),
                new_brought_forward=new_brought_forward(r, accrued),
            )
        )
    return RolloverPreviewResponse(from_year=from_year, to_year=to_year, items=items, total=len(items))


async def backup_status(session: AsyncSession, year: int) -> BackupStatusResponse:
    """Record counts for a year, split by cached status."""
    result = await session.execute(
        select(col(EmployeeBalance.status), func.count())
        .where(col(EmployeeBalance.year) == year)
        .group_by(col(EmployeeBalance.status))
    )
    counts = {status: count for status, count in result.all()}
    active = counts.get(EmployeeStatus.ACTIVE.value, 0)
    inactive = counts.get(EmployeeStatus.INACTIVE.value, 0)
    return BackupStatusResponse(
        year=year,
        total_records=sum(counts.values()),
        active_records=active,
        inactive_records=inactive,
    )
