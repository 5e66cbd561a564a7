# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select
from sqlmodel import col

from leave_engine.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from leave_engine.models.base import now_utc
from leave_engine.models.enums import AuditAction, AuditEntityType, BalanceAction, LeaveType, RequestStatus, UserRole
from leave_engine.models.request import LeaveRequest
from leave_engine.schemas.request import LeaveRequestListResponse, LeaveRequestResponse
from leave_engine.services.audit import model_to_audit_dict, write_audit_log
from leave_engine.services.balance import apply_leave_effect_for_employee, current_balance, get_balance_record
from leave_engine.services.duration import calculate_request_duration
from leave_engine.services.notification import LeaveEvent
from leave_engine.services.policy import get_policy

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.schemas.auth import AuthContext
    from leave_engine.schemas.request import RejectPayload, SubmitLeavePayload
    from leave_engine.services.notification import NotificationSink

logger = logging.getLogger(__name__)

_OPEN_STATUSES = [RequestStatus.PENDING.value, RequestStatus.APPROVED.value]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_request_response(leave_request: LeaveRequest) -> LeaveRequestResponse:
    """Map a request model to its response schema."""
    return LeaveRequestResponse(
        id=leave_request.id,
        title=leave_request.title,
        detail=leave_request.detail,
        start_date=leave_request.start_date,
        end_date=leave_request.end_date,
        leave_type=LeaveType(leave_request.leave_type),
        is_half_day=leave_request.is_half_day,
        requester_email=leave_request.requester_email,
        approver_email=leave_request.approver_email,
        status=RequestStatus(leave_request.status),
        working_days=leave_request.working_days,
        rejection_reason=leave_request.rejection_reason,
        balance_updated=leave_request.balance_updated,
        decided_at=leave_request.decided_at,
        decided_by=leave_request.decided_by,
        created_at=leave_request.created_at,
        updated_at=leave_request.updated_at,
    )


def _build_event(leave_request: LeaveRequest, kind: str) -> LeaveEvent:
    return LeaveEvent(
        kind=kind,
        request_id=leave_request.id,
        requester_email=leave_request.requester_email,
        approver_email=leave_request.approver_email,
        leave_type=leave_request.leave_type,
        start_date=leave_request.start_date,
        end_date=leave_request.end_date,
        working_days=leave_request.working_days,
        reason=leave_request.rejection_reason,
    )


async def _get_request_or_404(
    session: AsyncSession,
    request_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> LeaveRequest:
    """Load a request, or raise 404.

    With ``for_update`` the row is locked and re-read from the database, so
    status and ``balance_updated`` reflect any transition committed while
    waiting for the lock.
    """
    stmt = select(LeaveRequest).where(col(LeaveRequest.id) == request_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(stmt)
    leave_request = result.scalar_one_or_none()
    if leave_request is None:
        raise NotFoundError("Request not found")
    return leave_request


async def _check_request_overlap(
    session: AsyncSession,
    requester_email: str,
    start_date: date,
    end_date: date,
) -> None:
    """Raise 409 if a pending or approved request overlaps the date range."""
    result = await session.execute(
        select(LeaveRequest).where(
            col(LeaveRequest.requester_email) == requester_email,
            col(LeaveRequest.status).in_(_OPEN_STATUSES),
            col(LeaveRequest.start_date) <= end_date,
            col(LeaveRequest.end_date) >= start_date,
        )
    )
    if result.scalars().first() is not None:
        raise ConflictError("Request overlaps with an existing pending or approved request")


def _can_view(auth: AuthContext, leave_request: LeaveRequest) -> bool:
    if auth.is_admin:
        return True
    return auth.email in (leave_request.requester_email, leave_request.approver_email)


def _check_can_decide(auth: AuthContext, leave_request: LeaveRequest) -> None:
    """Admins decide any request; managers only those assigned to them."""
    if auth.is_admin:
        return
    if leave_request.requester_email == auth.email:
        raise ForbiddenError("Requests cannot be decided by their requester")
    if leave_request.approver_email != auth.email:
        raise ForbiddenError("Only the assigned approver can decide this request")


async def _apply_balance_effect(
    session: AsyncSession,
    auth: AuthContext,
    leave_request: LeaveRequest,
    action: BalanceAction,
) -> None:
    """Charge or restore the request's balance and flip ``balance_updated``.

    Both writes share one transaction. Approve only charges while the flag is
    clear and cancel only restores while it is set, so each transition posts
    at most once.
    """
    charged = leave_request.balance_updated
    if (action == BalanceAction.APPROVE and charged) or (action == BalanceAction.CANCEL and not charged):
        return

    await apply_leave_effect_for_employee(
        session,
        actor_email=auth.email,
        employee_email=leave_request.requester_email,
        year=leave_request.start_date.year,
        leave_type=leave_request.leave_type,
        days=leave_request.working_days,
        action=action,
        commit=False,
    )

    leave_request.balance_updated = action == BalanceAction.APPROVE
    session.add(leave_request)
    try:
        await session.flush()
    except Exception:
        logger.exception(
            "Balance %s applied but flag update failed: request=%s employee=%s",
            action.value,
            leave_request.id,
            leave_request.requester_email,
        )
        await session.rollback()
        raise


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------


async def submit_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: SubmitLeavePayload,
    sink: NotificationSink,
    today: date | None = None,
) -> LeaveRequestResponse:
    """Submit a leave request.

    Flow:
    1. Resolve the leave type
    2. Compute the duration in the type's unit (frozen on the request)
    3. Reject overlaps with open requests
    4. Check the balance for the start date's year covers the duration
    5. Create the request (pending), audit, commit
    6. Notify
    """
    policy = get_policy(payload.leave_type)

    working_days = await calculate_request_duration(
        session, policy.leave_type, payload.start_date, payload.end_date, payload.is_half_day
    )

    await _check_request_overlap(session, auth.email, payload.start_date, payload.end_date)

    record = await get_balance_record(session, auth.email, payload.start_date.year)
    available = current_balance(record, policy.leave_type, today)
    if available < working_days:
        raise ValidationError(
            f"Insufficient {policy.leave_type.value} balance: requested {working_days} {policy.unit.value}, "
            f"available {available}"
        )

    leave_request = LeaveRequest(
        title=payload.title,
        detail=payload.detail,
        start_date=payload.start_date,
        end_date=payload.end_date,
        leave_type=policy.leave_type.value,
        is_half_day=payload.is_half_day,
        requester_email=auth.email,
        approver_email=payload.approver_email or record.manager_email,
        status=RequestStatus.PENDING.value,
        working_days=working_days,
    )
    session.add(leave_request)
    await session.flush()

    await write_audit_log(
        session,
        actor_email=auth.email,
        entity_type=AuditEntityType.REQUEST,
        entity_id=leave_request.id,
        action=AuditAction.SUBMIT,
        after_json=model_to_audit_dict(leave_request),
    )

    await session.commit()
    await session.refresh(leave_request)

    await sink.publish(_build_event(leave_request, "submitted"))
    return _build_request_response(leave_request)


async def approve_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    sink: NotificationSink,
) -> LeaveRequestResponse:
    """Approve a pending request and charge its duration to the balance."""
    leave_request = await _get_request_or_404(session, request_id, for_update=True)

    if leave_request.status != RequestStatus.PENDING.value:
        raise ValidationError("Only pending requests can be approved")
    _check_can_decide(auth, leave_request)

    before_dict = model_to_audit_dict(leave_request)

    await _apply_balance_effect(session, auth, leave_request, BalanceAction.APPROVE)

    leave_request.status = RequestStatus.APPROVED.value
    leave_request.decided_at = now_utc()
    leave_request.decided_by = auth.email
    await session.flush()

    await write_audit_log(
        session,
        actor_email=auth.email,
        entity_type=AuditEntityType.REQUEST,
        entity_id=leave_request.id,
        action=AuditAction.APPROVE,
        before_json=before_dict,
        after_json=model_to_audit_dict(leave_request),
    )

    await session.commit()
    await session.refresh(leave_request)

    await sink.publish(_build_event(leave_request, "approved"))
    return _build_request_response(leave_request)


async def reject_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    sink: NotificationSink,
    payload: RejectPayload | None = None,
) -> LeaveRequestResponse:
    """Reject a pending request. No balance is touched."""
    leave_request = await _get_request_or_404(session, request_id, for_update=True)

    if leave_request.status != RequestStatus.PENDING.value:
        raise ValidationError("Only pending requests can be rejected")
    _check_can_decide(auth, leave_request)

    before_dict = model_to_audit_dict(leave_request)

    leave_request.status = RequestStatus.REJECTED.value
    leave_request.rejection_reason = payload.reason if payload else None
    leave_request.decided_at = now_utc()
    leave_request.decided_by = auth.email
    await session.flush()

    await write_audit_log(
        session,
        actor_email=auth.email,
        entity_type=AuditEntityType.REQUEST,
        entity_id=leave_request.id,
        action=AuditAction.REJECT,
        before_json=before_dict,
        after_json=model_to_audit_dict(leave_request),
    )

    await session.commit()
    await session.refresh(leave_request)

    await sink.publish(_build_event(leave_request, "rejected"))
    return _build_request_response(leave_request)


async def cancel_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    sink: NotificationSink,
    today: date | None = None,
) -> LeaveRequestResponse:
    """Cancel a pending or approved request, restoring any charged balance.

    Requesters may cancel their own pending requests, and their approved
    requests while the leave has not started. Managers and admins may cancel
    any open request.
    """
    today = today or date.today()
    leave_request = await _get_request_or_404(session, request_id, for_update=True)

    if leave_request.status not in _OPEN_STATUSES:
        raise ValidationError("Only pending or approved requests can be cancelled")

    if not auth.can_approve:
        if leave_request.requester_email != auth.email:
            raise ForbiddenError("Not authorized to cancel this request")
        if leave_request.status == RequestStatus.APPROVED.value and leave_request.start_date <= today:
            raise ValidationError("Approved leave that has already started cannot be cancelled")

    before_dict = model_to_audit_dict(leave_request)

    await _apply_balance_effect(session, auth, leave_request, BalanceAction.CANCEL)

    leave_request.status = RequestStatus.CANCELLED.value
    leave_request.decided_at = now_utc()
    leave_request.decided_by = auth.email
    await session.flush()

    await write_audit_log(
        session,
        actor_email=auth.email,
        entity_type=AuditEntityType.REQUEST,
        entity_id=leave_request.id,
        action=AuditAction.CANCEL,
        before_json=before_dict,
        after_json=model_to_audit_dict(leave_request),
    )

    await session.commit()
    await session.refresh(leave_request)

    await sink.publish(_build_event(leave_request, "cancelled"))
    return _build_request_response(leave_request)


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> LeaveRequestResponse:
    """Get a single request visible to the caller."""
    leave_request = await _get_request_or_404(session, request_id)
    if not _can_view(auth, leave_request):
        raise ForbiddenError("Not authorized to view this request")
    return _build_request_response(leave_request)


async def list_requests(
    session: AsyncSession,
    auth: AuthContext,
    status_filter: RequestStatus | None = None,
    requester_email: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> LeaveRequestListResponse:
    """List requests visible to the caller, newest first.

    Employees see their own requests, managers also see requests awaiting
    their approval, and admins see everything.
    """
    base_filters = []

    if auth.role == UserRole.EMPLOYEE:
        base_filters.append(col(LeaveRequest.requester_email) == auth.email)
    elif auth.role == UserRole.MANAGER:
        base_filters.append(
            or_(
                col(LeaveRequest.requester_email) == auth.email,
                col(LeaveRequest.approver_email) == auth.email,
            )
        )

    if status_filter is not None:
        base_filters.append(col(LeaveRequest.status) == status_filter.value)
    if requester_email is not None:
        base_filters.append(col(LeaveRequest.requester_email) == requester_email)

    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*base_filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest)
        .where(*base_filters)
        .order_by(col(LeaveRequest.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    requests = list(result.scalars().all())

    return LeaveRequestListResponse(
        items=[_build_request_response(r) for r in requests],
        total=total,
    )
