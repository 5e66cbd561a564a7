# ruff: noqa: B008, TC001
from __future__ import annotations

from fastapi import APIRouter, Depends, Path

from leave_engine.api.deps import AdminDep, reject_during_maintenance
from leave_engine.db import SessionDep
from leave_engine.schemas.rollover import (
    BackupStatusResponse,
    RolloverPreviewResponse,
    RolloverRequest,
    RolloverResponse,
)
from leave_engine.services import rollover as rollover_service

rollover_router = APIRouter(prefix="/rollover", tags=["rollover"])


@rollover_router.post(
    "",
    response_model=RolloverResponse,
    dependencies=[Depends(reject_during_maintenance)],
)
async def run_rollover(
    payload: RolloverRequest,
    session: SessionDep,
    auth: AdminDep,
) -> RolloverResponse:
    """Roll every active employee into the next year (admin only)."""
    result = await rollover_service.run_rollover(session, auth.email, payload.from_year, payload.to_year)
    return RolloverResponse(
        from_year=result.from_year,
        to_year=result.to_year,
        employees_processed=result.employees_processed,
        backup_records_preserved=result.backup_records_preserved,
        new_records_created=result.new_records_created,
    )


@rollover_router.get("/preview/{from_year}/{to_year}", response_model=RolloverPreviewResponse)
async def preview_rollover(
    session: SessionDep,
    auth: AdminDep,
    from_year: int = Path(ge=1900, le=9999),
    to_year: int = Path(ge=1900, le=9999),
) -> RolloverPreviewResponse:
    """Show what a rollover would carry forward (admin only)."""
    return await rollover_service.preview_rollover(session, from_year, to_year)


@rollover_router.get("/backup-status/{year}", response_model=BackupStatusResponse)
async def backup_status(
    session: SessionDep,
    auth: AdminDep,
    year: int = Path(ge=1900, le=9999),
) -> BackupStatusResponse:
    """Record counts for a year (admin only)."""
    return await rollover_service.backup_status(session, year)
