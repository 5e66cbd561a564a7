from sqlmodel import SQLModel

from leave_engine.models.audit import AuditLog
from leave_engine.models.balance import EmployeeBalance
from leave_engine.models.base import CreatedAtMixin, TimestampMixin, UUIDBase
from leave_engine.models.enums import (
    AuditAction,
    AuditEntityType,
    BalanceAction,
    EmployeeStatus,
    HolidayType,
    LeaveType,
    LeaveUnit,
    OfficeStatus,
    RequestStatus,
    UserRole,
)
from leave_engine.models.holiday import Holiday
from leave_engine.models.request import LeaveRequest

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "BalanceAction",
    "CreatedAtMixin",
    "EmployeeBalance",
    "EmployeeStatus",
    "Holiday",
    "HolidayType",
    "LeaveRequest",
    "LeaveType",
    "LeaveUnit",
    "OfficeStatus",
    "RequestStatus",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
    "UserRole",
]
