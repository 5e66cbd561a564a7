from __future__ import annotations

from pydantic import BaseModel, Field


class RolloverRequest(BaseModel):
    """Request body for the year-end rollover."""

    from_year: int = Field(ge=1900, le=9999)
    to_year: int = Field(ge=1900, le=9999)


class RolloverResponse(BaseModel):
    """Summary of a completed rollover."""

    from_year: int
    to_year: int
    employees_processed: int
    backup_records_preserved: int
    new_records_created: int


class RolloverPreviewItem(BaseModel):
    employee_email: str
    employee_name: str
    department: str | None
    brought_forward: float
    accumulated_leave: float
    annual_used: float
    forfeited: float
    annual_adjustments: float
    current_balance: float
    new_brought_forward: float


class RolloverPreviewResponse(BaseModel):
    from_year: int
    to_year: int
    items: list[RolloverPreviewItem]
    total: int


class BackupStatusResponse(BaseModel):
    year: int
    total_records: int
    active_records: int
    inactive_records: int
