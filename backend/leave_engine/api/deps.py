# ruff: noqa: B008
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header

from leave_engine.exceptions import ForbiddenError, ServiceUnavailableError, ValidationError
from leave_engine.models.enums import UserRole
from leave_engine.schemas.auth import AuthContext
from leave_engine.services.notification import NotificationSink, get_notification_sink
from leave_engine.services.system import SystemState, get_system_state


async def get_auth_context(
    x_user_email: str = Header(),
    x_role: str = Header(default="employee"),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    try:
        role = UserRole(x_role.lower())
    except ValueError:
        raise ValidationError(f"Unknown role: {x_role!r}") from None
    return AuthContext(email=x_user_email.strip().lower(), role=role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]
SystemStateDep = Annotated[SystemState, Depends(get_system_state)]
NotificationSinkDep = Annotated[NotificationSink, Depends(get_notification_sink)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require admin role for the request."""
    if not auth.is_admin:
        raise ForbiddenError("Admin access required")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


async def require_approver(
    auth: AuthDep,
) -> AuthContext:
    """Require manager or admin role for the request."""
    if not auth.can_approve:
        raise ForbiddenError("Manager or admin access required")
    return auth


ApproverDep = Annotated[AuthContext, Depends(require_approver)]


async def reject_during_maintenance(auth: AuthDep, state: SystemStateDep) -> None:
    """Block mutating requests from non-admins while maintenance mode is on."""
    if state.maintenance_mode and not auth.is_admin:
        raise ServiceUnavailableError("System is under maintenance")
