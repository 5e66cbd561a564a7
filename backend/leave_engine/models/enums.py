from __future__ import annotations

import enum


class LeaveType(enum.StrEnum):
    """Leave types an employee can request."""

    ANNUAL = "annual"
    SICK = "sick"
    MATERNITY = "maternity"
    PARENTAL = "parental"
    FAMILY = "family"
    ADOPTION = "adoption"
    STUDY = "study"
    WELLNESS = "wellness"


class LeaveUnit(enum.StrEnum):
    """Unit a leave type is denominated in."""

    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"


class RequestStatus(enum.StrEnum):
    """State machine for leave requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class EmployeeStatus(enum.StrEnum):
    """Derived from the contract termination date."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"


class BalanceAction(enum.StrEnum):
    """Direction of a balance mutation."""

    APPROVE = "approve"
    CANCEL = "cancel"


class HolidayType(enum.StrEnum):
    PUBLIC = "public"
    COMPANY = "company"


class OfficeStatus(enum.StrEnum):
    """Whether the office is open on a holiday. Only CLOSED removes a working day."""

    CLOSED = "closed"
    OPTIONAL = "optional"
    OPEN = "open"


class UserRole(enum.StrEnum):
    EMPLOYEE = "employee"
    MANAGER = "manager"
    ADMIN = "admin"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    BALANCE = "BALANCE"
    REQUEST = "REQUEST"
    HOLIDAY = "HOLIDAY"
    ROLLOVER = "ROLLOVER"
    SYSTEM = "SYSTEM"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    ROLLOVER = "ROLLOVER"
