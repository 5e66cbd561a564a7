# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class LeaveEvent(BaseModel):
    """A leave-request transition handed to the notification collaborator."""

    kind: str  # "submitted", "approved", "rejected" or "cancelled"
    request_id: uuid.UUID
    requester_email: str
    approver_email: str | None = None
    leave_type: str
    start_date: date
    end_date: date
    working_days: float
    reason: str | None = None


@runtime_checkable
class NotificationSink(Protocol):
    """Interface for whatever delivers leave notifications."""

    async def publish(self, event: LeaveEvent) -> None:
        """Hand off an event. Must not raise for delivery failures."""
        ...


class InMemoryNotificationSink:
    """Records events and logs them. Used in development and tests."""

    def __init__(self) -> None:
        self.events: list[LeaveEvent] = []

    async def publish(self, event: LeaveEvent) -> None:
        self.events.append(event)
        logger.info(
            "Leave %s: request=%s requester=%s type=%s %s..%s",
            event.kind,
            event.request_id,
            event.requester_email,
            event.leave_type,
            event.start_date,
            event.end_date,
        )

    def clear(self) -> None:
        self.events.clear()


_notification_sink: NotificationSink = InMemoryNotificationSink()


def get_notification_sink() -> NotificationSink:
    """FastAPI dependency for the notification sink."""
    return _notification_sink


def set_notification_sink(sink: NotificationSink) -> None:
    """Override the sink (for testing or production wiring)."""
    global _notification_sink
    _notification_sink = sink
