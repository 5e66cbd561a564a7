from __future__ import annotations

from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import CreatedAtMixin, UUIDBase


class AuditLog(UUIDBase, CreatedAtMixin, table=True):
    """Immutable record of every balance, request, holiday and rollover mutation."""

    __tablename__ = "audit_log"
    __table_args__ = (sa.Index("ix_audit_entity", "entity_type", "entity_id"),)

    actor_email: str = Field(max_length=255)
    entity_type: str = Field(max_length=50)
    entity_id: str = Field(max_length=255)
    action: str = Field(max_length=50)
    before_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    after_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
