# ruff: noqa: TC003
from __future__ import annotations

import datetime

from sqlmodel import Field

from leave_engine.models.base import CreatedAtMixin, UUIDBase
from leave_engine.models.enums import HolidayType, OfficeStatus


class Holiday(UUIDBase, CreatedAtMixin, table=True):
    """A public or company holiday. Only office-closed holidays reduce working days."""

    __tablename__ = "holiday"

    date: datetime.date = Field(unique=True, index=True)
    name: str = Field(max_length=255)
    type: str = Field(default=HolidayType.PUBLIC, max_length=20)
    office_status: str = Field(default=OfficeStatus.CLOSED, max_length=20)
    description: str | None = None
    is_recurring: bool = False
