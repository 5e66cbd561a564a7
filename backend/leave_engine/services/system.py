from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from leave_engine.config import get_settings
from leave_engine.models.enums import AuditAction, AuditEntityType
from leave_engine.services.audit import write_audit_log

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.schemas.auth import AuthContext

logger = logging.getLogger(__name__)


class SystemState:
    """Process-wide operational flags."""

    def __init__(self, maintenance_mode: bool = False) -> None:
        self.maintenance_mode = maintenance_mode


_system_state: SystemState | None = None


def get_system_state() -> SystemState:
    """FastAPI dependency for the system state, seeded from settings on first use."""
    global _system_state
    if _system_state is None:
        _system_state = SystemState(maintenance_mode=get_settings().maintenance_mode)
    return _system_state


def set_system_state(state: SystemState | None) -> None:
    """Override the state (for testing). ``None`` re-seeds from settings."""
    global _system_state
    _system_state = state


async def set_maintenance_mode(
    session: AsyncSession,
    auth: AuthContext,
    state: SystemState,
    enabled: bool,
) -> SystemState:
    """Toggle maintenance mode and record who did it.

    The in-process flag only flips once the audit entry is committed.
    """
    previous = state.maintenance_mode

    await write_audit_log(
        session,
        actor_email=auth.email,
        entity_type=AuditEntityType.SYSTEM,
        entity_id="maintenance_mode",
        action=AuditAction.UPDATE,
        before_json={"maintenance_mode": previous},
        after_json={"maintenance_mode": enabled},
    )
    await session.commit()
    state.maintenance_mode = enabled

    logger.info("Maintenance mode %s by %s", "enabled" if enabled else "disabled", auth.email)
    return state
