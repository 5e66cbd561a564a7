# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from leave_engine.api.deps import ApproverDep, AuthDep, NotificationSinkDep, reject_during_maintenance
from leave_engine.db import SessionDep
from leave_engine.models.enums import RequestStatus
from leave_engine.schemas.request import (
    LeaveRequestListResponse,
    LeaveRequestResponse,
    RejectPayload,
    SubmitLeavePayload,
)
from leave_engine.services import request as request_service

requests_router = APIRouter(prefix="/requests", tags=["requests"])


@requests_router.post(
    "",
    response_model=LeaveRequestResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(reject_during_maintenance)],
)
async def submit_request(
    payload: SubmitLeavePayload,
    session: SessionDep,
    auth: AuthDep,
    sink: NotificationSinkDep,
) -> LeaveRequestResponse:
    """Submit a new leave request for the caller."""
    return await request_service.submit_request(session, auth, payload, sink)


@requests_router.get("", response_model=LeaveRequestListResponse)
async def list_requests(
    session: SessionDep,
    auth: AuthDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    requester_email: str | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveRequestListResponse:
    """List leave requests visible to the caller."""
    return await request_service.list_requests(session, auth, status_filter, requester_email, offset, limit)


@requests_router.get("/{request_id}", response_model=LeaveRequestResponse)
async def get_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Get a single leave request."""
    return await request_service.get_request(session, auth, request_id)


@requests_router.post(
    "/{request_id}/approve",
    response_model=LeaveRequestResponse,
    dependencies=[Depends(reject_during_maintenance)],
)
async def approve_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: ApproverDep,
    sink: NotificationSinkDep,
) -> LeaveRequestResponse:
    """Approve a pending leave request (manager or admin)."""
    return await request_service.approve_request(session, auth, request_id, sink)


@requests_router.post(
    "/{request_id}/reject",
    response_model=LeaveRequestResponse,
    dependencies=[Depends(reject_during_maintenance)],
)
async def reject_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: ApproverDep,
    sink: NotificationSinkDep,
    payload: RejectPayload | None = None,
) -> LeaveRequestResponse:
    """Reject a pending leave request (manager or admin)."""
    return await request_service.reject_request(session, auth, request_id, sink, payload)


@requests_router.post(
    "/{request_id}/cancel",
    response_model=LeaveRequestResponse,
    dependencies=[Depends(reject_during_maintenance)],
)
async def cancel_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    sink: NotificationSinkDep,
) -> LeaveRequestResponse:
    """Cancel a pending or approved leave request."""
    return await request_service.cancel_request(session, auth, request_id, sink)
