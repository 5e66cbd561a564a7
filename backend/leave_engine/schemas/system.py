from __future__ import annotations

from pydantic import BaseModel


class MaintenanceModeRequest(BaseModel):
    maintenance_mode: bool


class MaintenanceModeResponse(BaseModel):
    maintenance_mode: bool
    message: str | None = None
