# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field

from leave_engine.models.enums import HolidayType, OfficeStatus


class CreateHolidayRequest(BaseModel):
    """Request body for creating a holiday."""

    date: date
    name: str = Field(min_length=1, max_length=255)
    type: HolidayType = HolidayType.PUBLIC
    office_status: OfficeStatus = OfficeStatus.CLOSED
    description: str | None = Field(default=None, max_length=1000)
    is_recurring: bool = False


class HolidayResponse(BaseModel):
    """Response schema for a holiday."""

    id: uuid.UUID
    date: date
    name: str
    type: HolidayType
    office_status: OfficeStatus
    description: str | None
    is_recurring: bool


class HolidayListResponse(BaseModel):
    """Paginated list of holidays."""

    items: list[HolidayResponse]
    total: int


class WorkingDaysResponse(BaseModel):
    """Working-day count for a date range."""

    start_date: date
    end_date: date
    is_half_day: bool
    working_days: float
    non_working_dates: list[date]
