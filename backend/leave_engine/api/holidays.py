# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status

from leave_engine.api.deps import AdminDep, AuthDep, reject_during_maintenance
from leave_engine.db import SessionDep
from leave_engine.exceptions import ValidationError
from leave_engine.schemas.holiday import (
    CreateHolidayRequest,
    HolidayListResponse,
    HolidayResponse,
    WorkingDaysResponse,
)
from leave_engine.services import duration as duration_service
from leave_engine.services import holiday as holiday_service

holidays_router = APIRouter(prefix="/holidays", tags=["holidays"])


@holidays_router.post(
    "",
    response_model=HolidayResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(reject_during_maintenance)],
)
async def create_holiday(
    payload: CreateHolidayRequest,
    session: SessionDep,
    auth: AdminDep,
) -> HolidayResponse:
    """Create a holiday (admin only)."""
    return await holiday_service.create_holiday(session, auth, payload)


@holidays_router.get("", response_model=HolidayListResponse)
async def list_holidays(
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> HolidayListResponse:
    """List holidays with optional year filter."""
    return await holiday_service.list_holidays(session, year, offset, limit)


@holidays_router.get("/working-days", response_model=WorkingDaysResponse)
async def get_working_days(
    session: SessionDep,
    auth: AuthDep,
    start: date = Query(),
    end: date = Query(),
    half_day: bool = Query(default=False),
) -> WorkingDaysResponse:
    """Count working days in a date range, excluding weekends and closed holidays."""
    if end < start:
        raise ValidationError("end must be on or after start")
    return await duration_service.get_working_days(session, start, end, half_day)


@holidays_router.delete(
    "/{holiday_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(reject_during_maintenance)],
)
async def delete_holiday(
    holiday_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> None:
    """Delete a holiday (admin only)."""
    await holiday_service.delete_holiday(session, auth, holiday_id)
