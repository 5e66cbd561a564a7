"""Annual-leave accrual.

Annual leave is earned at a flat monthly rate and posts at month end: the
month an employee starts in is credited pro rata once that month is over,
and every complete month after it is credited in full. Earnings within a
year never exceed the cap.
"""

from __future__ import annotations

import calendar
from datetime import date

MONTHLY_ACCRUAL_RATE = 1.667
ANNUAL_ACCRUAL_CAP = 20.0

# Stored and computed values closer than this are considered equal.
RECONCILE_TOLERANCE = 0.001


def _days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def calculation_date(reference_date: date, termination_date: date | None = None) -> date:
    """The date accrual is measured up to.

    A termination in the same calendar year as the reference date freezes
    accrual at the termination date; otherwise the reference date is used.
    """
    if termination_date is not None and termination_date.year == reference_date.year:
        return termination_date
    return reference_date


def calculate_accumulated_leave(
    reference_date: date,
    termination_date: date | None = None,
    start_date: date | None = None,
) -> float:
    """Annual leave earned in the calculation year up to the calculation date."""
    calc_date = calculation_date(reference_date, termination_date)
    year_start = date(calc_date.year, 1, 1)

    start = start_date or year_start
    if start > calc_date:
        return 0.0

    if start.year < calc_date.year:
        # Employed all year: every month before the current one is complete.
        accumulated = MONTHLY_ACCRUAL_RATE * (calc_date.month - 1)
    else:
        start = max(start, year_start)
        accumulated = 0.0

        days_in_start_month = _days_in_month(start.year, start.month)
        start_month_end = date(start.year, start.month, days_in_start_month)
        if calc_date >= start_month_end:
            accumulated += (days_in_start_month - start.day + 1) / days_in_start_month * MONTHLY_ACCRUAL_RATE

        complete_months = max(calc_date.month - start.month - 1, 0)
        accumulated += MONTHLY_ACCRUAL_RATE * complete_months

    return round(min(max(accumulated, 0.0), ANNUAL_ACCRUAL_CAP), 3)


def reconcile_accumulated_leave(stored: float, computed: float) -> float | None:
    """Return the value to persist when the stored cache has drifted, else None."""
    if abs(stored - computed) > RECONCILE_TOLERANCE:
        return computed
    return None
