from __future__ import annotations

from pydantic import BaseModel

from leave_engine.models.enums import UserRole


class AuthContext(BaseModel):
    """Dev auth context extracted from request headers."""

    email: str
    role: UserRole = UserRole.EMPLOYEE

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def can_approve(self) -> bool:
        return self.role in (UserRole.MANAGER, UserRole.ADMIN)
