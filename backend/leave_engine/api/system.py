from __future__ import annotations

from fastapi import APIRouter

from leave_engine.api.deps import AdminDep, SystemStateDep
from leave_engine.db import SessionDep
from leave_engine.schemas.system import MaintenanceModeRequest, MaintenanceModeResponse
from leave_engine.services import system as system_service

system_router = APIRouter(prefix="/system", tags=["system"])


@system_router.get("/maintenance", response_model=MaintenanceModeResponse)
async def get_maintenance_mode(auth: AdminDep, state: SystemStateDep) -> MaintenanceModeResponse:
    """Current maintenance mode (admin only)."""
    return MaintenanceModeResponse(maintenance_mode=state.maintenance_mode)


@system_router.post("/maintenance", response_model=MaintenanceModeResponse)
async def set_maintenance_mode(
    payload: MaintenanceModeRequest,
    session: SessionDep,
    auth: AdminDep,
    state: SystemStateDep,
) -> MaintenanceModeResponse:
    """Turn maintenance mode on or off (admin only)."""
    await system_service.set_maintenance_mode(session, auth, state, payload.maintenance_mode)
    return MaintenanceModeResponse(
        maintenance_mode=state.maintenance_mode,
        message=f"Maintenance mode {'enabled' if state.maintenance_mode else 'disabled'}",
    )
