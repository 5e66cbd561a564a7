"""Leave-type registry: allocation, unit and usage field for every LeaveType."""

from __future__ import annotations

from dataclasses import dataclass

from leave_engine.exceptions import ValidationError
from leave_engine.models.enums import LeaveType, LeaveUnit


@dataclass(frozen=True)
class LeaveTypePolicy:
    """Static rules for one leave type.

    ``allocation_field`` is None for annual leave, whose entitlement comes
    from the accrual engine rather than a fixed yearly allocation.
    """

    leave_type: LeaveType
    unit: LeaveUnit
    used_field: str
    allocation_field: str | None
    default_allocation: float | None
    allows_half_day: bool
    resets_on_rollover: bool = True


POLICIES: dict[LeaveType, LeaveTypePolicy] = {
    LeaveType.ANNUAL: LeaveTypePolicy(
        leave_type=LeaveType.ANNUAL,
        unit=LeaveUnit.DAYS,
        used_field="annual_used",
        allocation_field=None,
        default_allocation=None,
        allows_half_day=True,
    ),
    LeaveType.SICK: LeaveTypePolicy(
        leave_type=LeaveType.SICK,
        unit=LeaveUnit.DAYS,
        used_field="sick_used",
        allocation_field="sick",
        default_allocation=36.0,
        allows_half_day=True,
        # 36 days over a three-year sick cycle; usage is carried across years.
        resets_on_rollover=False,
    ),
    LeaveType.MATERNITY: LeaveTypePolicy(
        leave_type=LeaveType.MATERNITY,
        unit=LeaveUnit.MONTHS,
        used_field="maternity_used",
        allocation_field="maternity",
        default_allocation=3.0,
        allows_half_day=False,
    ),
    LeaveType.PARENTAL: LeaveTypePolicy(
        leave_type=LeaveType.PARENTAL,
        unit=LeaveUnit.WEEKS,
        used_field="parental_used",
        allocation_field="parental",
        default_allocation=4.0,
        allows_half_day=False,
    ),
    LeaveType.FAMILY: LeaveTypePolicy(
        leave_type=LeaveType.FAMILY,
        unit=LeaveUnit.DAYS,
        used_field="family_used",
        allocation_field="family",
        default_allocation=3.0,
        allows_half_day=True,
    ),
    LeaveType.ADOPTION: LeaveTypePolicy(
        leave_type=LeaveType.ADOPTION,
        unit=LeaveUnit.WEEKS,
        used_field="adoption_used",
        allocation_field="adoption",
        default_allocation=4.0,
        allows_half_day=False,
    ),
    LeaveType.STUDY: LeaveTypePolicy(
        leave_type=LeaveType.STUDY,
        unit=LeaveUnit.DAYS,
        used_field="study_used",
        allocation_field="study",
        default_allocation=6.0,
        allows_half_day=True,
    ),
    LeaveType.WELLNESS: LeaveTypePolicy(
        leave_type=LeaveType.WELLNESS,
        unit=LeaveUnit.DAYS,
        used_field="wellness_used",
        allocation_field="wellness",
        default_allocation=2.0,
        allows_half_day=True,
    ),
}

_missing = set(LeaveType) - set(POLICIES)
if _missing:
    msg = f"Leave types without a policy: {sorted(_missing)}"
    raise RuntimeError(msg)


def parse_leave_type(value: str | LeaveType) -> LeaveType:
    """Normalise a leave-type identifier, raising ValidationError for unknown values."""
    if isinstance(value, LeaveType):
        return value
    normalised = value.strip().lower()
    # Older clients still send the pre-rename identifier.
    if normalised == "mentalhealth":
        return LeaveType.WELLNESS
    try:
        return LeaveType(normalised)
    except ValueError:
        raise ValidationError(f"Unknown leave type: {value!r}") from None


def get_policy(leave_type: str | LeaveType) -> LeaveTypePolicy:
    """Return the policy for a leave type."""
    return POLICIES[parse_leave_type(leave_type)]
