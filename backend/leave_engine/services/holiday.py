from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import extract, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leave_engine.exceptions import ConflictError, NotFoundError
from leave_engine.models.enums import AuditAction, AuditEntityType, HolidayType, OfficeStatus
from leave_engine.models.holiday import Holiday
from leave_engine.schemas.holiday import HolidayListResponse, HolidayResponse
from leave_engine.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.schemas.auth import AuthContext
    from leave_engine.schemas.holiday import CreateHolidayRequest


# ---------------------------------------------------------------------------
# Calendar resolution
# ---------------------------------------------------------------------------


def _occurrences(holiday: Holiday, start: date, end: date) -> list[date]:
    """Dates in [start, end] on which the holiday falls."""
    if not holiday.is_recurring:
        return [holiday.date] if start <= holiday.date <= end else []

    dates = []
    for year in range(start.year, end.year + 1):
        if holiday.date.month == 2 and holiday.date.day == 29 and not calendar.isleap(year):
            continue
        occurrence = holiday.date.replace(year=year)
        if start <= occurrence <= end:
            dates.append(occurrence)
    return dates


def closed_holiday_dates(holidays: Iterable[Holiday], start: date, end: date) -> set[date]:
    """Dates in [start, end] covered by a holiday on which the office is closed."""
    closed: set[date] = set()
    for holiday in holidays:
        if holiday.office_status != OfficeStatus.CLOSED:
            continue
        closed.update(_occurrences(holiday, start, end))
    return closed


def get_non_working_dates(start: date, end: date, holidays: Iterable[Holiday]) -> set[date]:
    """Every weekend day and closed holiday in [start, end]. Empty if start > end."""
    if start > end:
        return set()

    non_working = closed_holiday_dates(holidays, start, end)
    current = start
    one_day = timedelta(days=1)
    while current <= end:
        if current.weekday() >= 5:
            non_working.add(current)
        current += one_day
    return non_working


async def fetch_holidays_in_range(session: AsyncSession, start: date, end: date) -> list[Holiday]:
    """Load holidays that can fall inside [start, end], recurring ones included."""
    result = await session.execute(
        select(Holiday).where(
            or_(
                (col(Holiday.date) >= start) & (col(Holiday.date) <= end),
                col(Holiday.is_recurring).is_(True),
            )
        )
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


def _build_holiday_response(holiday: Holiday) -> HolidayResponse:
    return HolidayResponse(
        id=holiday.id,
        date=holiday.date,
        name=holiday.name,
        type=HolidayType(holiday.type),
        office_status=OfficeStatus(holiday.office_status),
        description=holiday.description,
        is_recurring=holiday.is_recurring,
    )


async def create_holiday(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateHolidayRequest,
) -> HolidayResponse:
    """Create a holiday. Only one holiday may exist per date."""
    holiday = Holiday(
        date=payload.date,
        name=payload.name,
        type=payload.type.value,
        office_status=payload.office_status.value,
        description=payload.description,
        is_recurring=payload.is_recurring,
    )
    session.add(holiday)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Holiday already exists for this date") from None

    await write_audit_log(
        session,
        actor_email=auth.email,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(holiday),
    )

    await session.commit()
    await session.refresh(holiday)
    return _build_holiday_response(holiday)


async def list_holidays(
    session: AsyncSession,
    year: int | None = None,
    offset: int = 0,
    limit: int = 50,
) -> HolidayListResponse:
    """List holidays with optional year filter."""
    base_filter = []

    if year is not None:
        base_filter.append(extract("year", col(Holiday.date)) == year)

    count_result = await session.execute(select(func.count()).select_from(Holiday).where(*base_filter))
    total = count_result.scalar_one()

    result = await session.execute(
        select(Holiday).where(*base_filter).order_by(col(Holiday.date)).offset(offset).limit(limit)
    )
    holidays = list(result.scalars().all())

    return HolidayListResponse(
        items=[_build_holiday_response(h) for h in holidays],
        total=total,
    )


async def get_holiday(session: AsyncSession, holiday_id: uuid.UUID) -> Holiday:
    """Get a single holiday or raise 404."""
    result = await session.execute(select(Holiday).where(col(Holiday.id) == holiday_id))
    holiday = result.scalar_one_or_none()
    if holiday is None:
        raise NotFoundError("Holiday not found")
    return holiday


async def delete_holiday(
    session: AsyncSession,
    auth: AuthContext,
    holiday_id: uuid.UUID,
) -> None:
    """Delete a holiday."""
    holiday = await get_holiday(session, holiday_id)

    await write_audit_log(
        session,
        actor_email=auth.email,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        action=AuditAction.DELETE,
        before_json=model_to_audit_dict(holiday),
    )

    await session.delete(holiday)
    await session.commit()
