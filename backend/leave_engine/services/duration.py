"""Duration of a leave request in the unit its leave type is denominated in.

Day-denominated types count working days (weekends and closed holidays
excluded). Week and month types use plain calendar arithmetic.
"""

from __future__ import annotations

import calendar
import math
from datetime import date, timedelta
from typing import TYPE_CHECKING

from leave_engine.exceptions import ValidationError
from leave_engine.models.enums import LeaveUnit
from leave_engine.schemas.holiday import WorkingDaysResponse
from leave_engine.services.holiday import fetch_holidays_in_range, get_non_working_dates
from leave_engine.services.policy import get_policy

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.models.enums import LeaveType
    from leave_engine.models.holiday import Holiday

# A request that touches at least one working day never counts as less than this.
MIN_WORKING_DAYS = 0.5


def count_working_days(
    start: date,
    end: date,
    holidays: Iterable[Holiday] = (),
    is_half_day: bool = False,
) -> float:
    """Working days in [start, end], inclusive.

    Half-day requests count each working day as 0.5. Any positive result is
    floored at half a day. Returns 0 when start > end or no working day falls
    inside the range.
    """
    if start > end:
        return 0.0

    non_working = get_non_working_dates(start, end, holidays)
    per_day = 0.5 if is_half_day else 1.0

    total = 0.0
    current = start
    one_day = timedelta(days=1)
    while current <= end:
        if current not in non_working:
            total += per_day
        current += one_day

    if total > 0:
        total = max(total, MIN_WORKING_DAYS)
    return total


def count_weeks(start: date, end: date) -> int:
    """Weeks between start and end, rounded up. A same-day range is 0."""
    if start > end:
        return 0
    return math.ceil((end - start).days / 7)


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def count_months(start: date, end: date) -> float:
    """Whole months between start and end plus the fractional remainder.

    The remainder is measured against the length of the month it starts in.
    A same-day range counts as one full month.
    """
    if start > end:
        return 0.0
    if start == end:
        return 1.0

    whole = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        whole -= 1

    anchor = _add_months(start, whole)
    days_in_anchor_month = calendar.monthrange(anchor.year, anchor.month)[1]
    fraction = (end - anchor).days / days_in_anchor_month

    return round(whole + fraction, 1)


def calculate_leave_duration(
    leave_type: LeaveType | str,
    start: date,
    end: date,
    holidays: Iterable[Holiday] = (),
    is_half_day: bool = False,
) -> float:
    """Duration of a request for the given leave type, in the type's own unit."""
    policy = get_policy(leave_type)

    if is_half_day and not policy.allows_half_day:
        raise ValidationError(f"Half-day requests are not allowed for {policy.leave_type.value} leave")

    if policy.unit == LeaveUnit.WEEKS:
        return float(count_weeks(start, end))
    if policy.unit == LeaveUnit.MONTHS:
        return count_months(start, end)
    return count_working_days(start, end, holidays, is_half_day)


async def calculate_request_duration(
    session: AsyncSession,
    leave_type: LeaveType | str,
    start: date,
    end: date,
    is_half_day: bool = False,
) -> float:
    """Duration of a request, loading holidays for the range.

    Raises ValidationError when the request charges nothing: a day range
    with no working day, or a same-day week range.
    """
    if end < start:
        raise ValidationError("end_date must be on or after start_date")

    holidays = await fetch_holidays_in_range(session, start, end)
    duration = calculate_leave_duration(leave_type, start, end, holidays, is_half_day)

    if duration <= 0:
        raise ValidationError("Request covers no chargeable leave after excluding weekends and holidays")

    return duration


async def get_working_days(
    session: AsyncSession,
    start: date,
    end: date,
    is_half_day: bool = False,
) -> WorkingDaysResponse:
    """Working-day count plus the non-working dates that were excluded."""
    holidays = await fetch_holidays_in_range(session, start, end)
    return WorkingDaysResponse(
        start_date=start,
        end_date=end,
        is_half_day=is_half_day,
        working_days=count_working_days(start, end, holidays, is_half_day),
        non_working_dates=sorted(get_non_working_dates(start, end, holidays)),
    )
