"""Integration tests for the leave request lifecycle and its balance effects."""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from conftest import (
    ADMIN_HEADERS,
    EMPLOYEE_EMAIL,
    EMPLOYEE_HEADERS,
    MANAGER_EMAIL,
    MANAGER_HEADERS,
    add_balance,
)
from sqlalchemy import select, update
from sqlmodel import col

from leave_engine.models.audit import AuditLog
from leave_engine.models.holiday import Holiday
from leave_engine.models.request import LeaveRequest

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.services.notification import InMemoryNotificationSink

BASE_URL = "/requests"

OTHER_HEADERS = {"X-User-Email": "bob@example.com", "X-Role": "employee"}
OTHER_MANAGER_HEADERS = {"X-User-Email": "other.manager@example.com", "X-Role": "manager"}


def _payload(**overrides: object) -> dict:
    payload: dict = {
        "title": "Summer trip",
        "start_date": "2024-07-01",
        "end_date": "2024-07-05",
        "leave_type": "annual",
    }
    payload.update(overrides)
    return payload


async def _submit(async_client: AsyncClient, headers: dict | None = None, **overrides: object) -> dict:
    resp = await async_client.post(BASE_URL, json=_payload(**overrides), headers=headers or EMPLOYEE_HEADERS)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Submit
# ---------------------------------------------------------------------------


async def test_submit_request(
    async_client: AsyncClient,
    db_session: AsyncSession,
    notification_sink: InMemoryNotificationSink,
) -> None:
    await add_balance(db_session)

    data = await _submit(async_client)
    assert data["status"] == "pending"
    assert data["working_days"] == 5
    assert data["requester_email"] == EMPLOYEE_EMAIL
    assert data["approver_email"] == MANAGER_EMAIL
    assert data["balance_updated"] is False

    assert [e.kind for e in notification_sink.events] == ["submitted"]
    assert str(notification_sink.events[0].request_id) == data["id"]


async def test_submit_excludes_closed_holidays(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    db_session.add(Holiday(date=date(2024, 7, 4), name="Independence Day"))
    await db_session.commit()

    data = await _submit(async_client)
    assert data["working_days"] == 4


async def test_submit_half_day(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    data = await _submit(async_client, end_date="2024-07-01", is_half_day=True)
    assert data["working_days"] == 0.5


async def test_submit_parental_counts_weeks(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    data = await _submit(async_client, leave_type="parental", end_date="2024-07-15")
    assert data["leave_type"] == "parental"
    assert data["working_days"] == 2


async def test_submit_legacy_leave_type(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    data = await _submit(async_client, leave_type="mentalhealth", end_date="2024-07-01")
    assert data["leave_type"] == "wellness"


async def test_submit_explicit_approver(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    data = await _submit(async_client, approver_email="lead@example.com")
    assert data["approver_email"] == "lead@example.com"


async def test_submit_without_balance_record(async_client: AsyncClient) -> None:
    resp = await async_client.post(BASE_URL, json=_payload(), headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 404


async def test_submit_insufficient_balance(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session, sick_used=35.5)
    resp = await async_client.post(
        BASE_URL,
        json=_payload(leave_type="sick", end_date="2024-07-02"),
        headers=EMPLOYEE_HEADERS,
    )
    assert resp.status_code == 400
    assert "Insufficient" in resp.json()["detail"]


async def test_submit_weekend_only(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    resp = await async_client.post(
        BASE_URL,
        json=_payload(start_date="2024-07-06", end_date="2024-07-07"),
        headers=EMPLOYEE_HEADERS,
    )
    assert resp.status_code == 400


async def test_submit_end_before_start(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    resp = await async_client.post(
        BASE_URL,
        json=_payload(start_date="2024-07-05", end_date="2024-07-01"),
        headers=EMPLOYEE_HEADERS,
    )
    assert resp.status_code == 422


async def test_submit_unknown_leave_type(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    resp = await async_client.post(BASE_URL, json=_payload(leave_type="sabbatical"), headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 400


async def test_submit_half_day_weeks_rejected(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    resp = await async_client.post(
        BASE_URL,
        json=_payload(leave_type="parental", end_date="2024-07-01", is_half_day=True),
        headers=EMPLOYEE_HEADERS,
    )
    assert resp.status_code == 400


async def test_submit_overlapping_request(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    await _submit(async_client)

    resp = await async_client.post(
        BASE_URL,
        json=_payload(start_date="2024-07-04", end_date="2024-07-09"),
        headers=EMPLOYEE_HEADERS,
    )
    assert resp.status_code == 409


async def test_submit_after_rejection_does_not_overlap(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    first = await _submit(async_client)
    await async_client.post(f"{BASE_URL}/{first['id']}/reject", headers=MANAGER_HEADERS)

    await _submit(async_client)


# ---------------------------------------------------------------------------
# Approve
# ---------------------------------------------------------------------------


async def test_approve_charges_balance(
    async_client: AsyncClient,
    db_session: AsyncSession,
    notification_sink: InMemoryNotificationSink,
) -> None:
    record = await add_balance(db_session, annual_used=1.0)
    request = await _submit(async_client)

    resp = await async_client.post(f"{BASE_URL}/{request['id']}/approve", headers=MANAGER_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "approved"
    assert data["balance_updated"] is True
    assert data["decided_by"] == MANAGER_EMAIL
    assert data["decided_at"] is not None

    await db_session.refresh(record)
    assert record.annual_used == 6.0
    assert record.version == 2
    assert [e.kind for e in notification_sink.events] == ["submitted", "approved"]


async def test_approve_twice_charges_once(async_client: AsyncClient, db_session: AsyncSession) -> None:
    record = await add_balance(db_session)
    request = await _submit(async_client)

    await async_client.post(f"{BASE_URL}/{request['id']}/approve", headers=MANAGER_HEADERS)
    resp = await async_client.post(f"{BASE_URL}/{request['id']}/approve", headers=MANAGER_HEADERS)
    assert resp.status_code == 400

    await db_session.refresh(record)
    assert record.annual_used == 5.0


async def test_approve_uses_frozen_duration(async_client: AsyncClient, db_session: AsyncSession) -> None:
    record = await add_balance(db_session)
    request = await _submit(async_client)

    # A holiday added after submission does not change the charge.
    db_session.add(Holiday(date=date(2024, 7, 4), name="Independence Day"))
    await db_session.commit()

    await async_client.post(f"{BASE_URL}/{request['id']}/approve", headers=MANAGER_HEADERS)
    await db_session.refresh(record)
    assert record.annual_used == 5.0


async def test_employee_cannot_approve(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    request = await _submit(async_client)

    resp = await async_client.post(f"{BASE_URL}/{request['id']}/approve", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 403


async def test_manager_cannot_approve_own_request(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session, employee_email=MANAGER_EMAIL, employee_name="Manager", manager_email=None)
    request = await _submit(async_client, headers=MANAGER_HEADERS)

    resp = await async_client.post(f"{BASE_URL}/{request['id']}/approve", headers=MANAGER_HEADERS)
    assert resp.status_code == 403


async def test_manager_cannot_approve_unassigned_request(async_client: AsyncClient, db_session: AsyncSession) -> None:
    record = await add_balance(db_session)
    request = await _submit(async_client)

    resp = await async_client.post(f"{BASE_URL}/{request['id']}/approve", headers=OTHER_MANAGER_HEADERS)
    assert resp.status_code == 403

    await db_session.refresh(record)
    assert record.annual_used == 0.0


async def test_admin_can_approve_unassigned_request(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    request = await _submit(async_client)

    resp = await async_client.post(f"{BASE_URL}/{request['id']}/approve", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["decided_by"] == ADMIN_HEADERS["X-User-Email"]


async def test_approve_rereads_request_decided_elsewhere(async_client: AsyncClient, db_session: AsyncSession) -> None:
    record = await add_balance(db_session)
    request = await _submit(async_client)

    # Another transaction approves the request; the session still holds the pending copy.
    await db_session.execute(
        update(LeaveRequest)
        .where(col(LeaveRequest.id) == uuid.UUID(request["id"]))
        .values(status="approved", balance_updated=True)
        .execution_options(synchronize_session=False)
    )
    await db_session.commit()

    resp = await async_client.post(f"{BASE_URL}/{request['id']}/approve", headers=MANAGER_HEADERS)
    assert resp.status_code == 400

    await db_session.refresh(record)
    assert record.annual_used == 0.0
    assert record.version == 1


async def test_approve_missing_request(async_client: AsyncClient) -> None:
    resp = await async_client.post(f"{BASE_URL}/{uuid.uuid4()}/approve", headers=MANAGER_HEADERS)
    assert resp.status_code == 404


async def test_approve_writes_audit_trail(async_client: AsyncClient, db_session: AsyncSession) -> None:
    record = await add_balance(db_session)
    request = await _submit(async_client)
    await async_client.post(f"{BASE_URL}/{request['id']}/approve", headers=MANAGER_HEADERS)

    request_entries = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == request["id"]).order_by(col(AuditLog.created_at))
    )
    assert [e.action for e in request_entries.scalars().all()] == ["SUBMIT", "APPROVE"]

    balance_entries = await db_session.execute(select(AuditLog).where(col(AuditLog.entity_id) == str(record.id)))
    entry = balance_entries.scalar_one()
    assert entry.action == "APPROVE"
    assert entry.before_json == {"annual_used": 0.0}
    assert entry.after_json["annual_used"] == 5.0


# ---------------------------------------------------------------------------
# Reject
# ---------------------------------------------------------------------------


async def test_reject_request(
    async_client: AsyncClient,
    db_session: AsyncSession,
    notification_sink: InMemoryNotificationSink,
) -> None:
    record = await add_balance(db_session)
    request = await _submit(async_client)

    resp = await async_client.post(
        f"{BASE_URL}/{request['id']}/reject",
        json={"reason": "Release week"},
        headers=MANAGER_HEADERS,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "rejected"
    assert data["rejection_reason"] == "Release week"
    assert data["balance_updated"] is False

    await db_session.refresh(record)
    assert record.annual_used == 0.0
    assert notification_sink.events[-1].kind == "rejected"
    assert notification_sink.events[-1].reason == "Release week"


async def test_reject_approved_request(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    request = await _submit(async_client)
    await async_client.post(f"{BASE_URL}/{request['id']}/approve", headers=MANAGER_HEADERS)

    resp = await async_client.post(f"{BASE_URL}/{request['id']}/reject", headers=MANAGER_HEADERS)
    assert resp.status_code == 400


async def test_manager_cannot_reject_unassigned_request(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    request = await _submit(async_client)

    resp = await async_client.post(f"{BASE_URL}/{request['id']}/reject", headers=OTHER_MANAGER_HEADERS)
    assert resp.status_code == 403

    fetched = await async_client.get(f"{BASE_URL}/{request['id']}", headers=EMPLOYEE_HEADERS)
    assert fetched.json()["status"] == "pending"


# ---------------------------------------------------------------------------
# Cancel
# ---------------------------------------------------------------------------


async def test_cancel_approved_restores_balance(async_client: AsyncClient, db_session: AsyncSession) -> None:
    record = await add_balance(db_session, annual_used=1.0)
    request = await _submit(async_client)
    await async_client.post(f"{BASE_URL}/{request['id']}/approve", headers=MANAGER_HEADERS)

    resp = await async_client.post(f"{BASE_URL}/{request['id']}/cancel", headers=MANAGER_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "cancelled"
    assert data["balance_updated"] is False

    await db_session.refresh(record)
    assert record.annual_used == 1.0
    assert record.version == 3


async def test_cancel_pending_leaves_balance(async_client: AsyncClient, db_session: AsyncSession) -> None:
    record = await add_balance(db_session)
    request = await _submit(async_client)

    resp = await async_client.post(f"{BASE_URL}/{request['id']}/cancel", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"

    await db_session.refresh(record)
    assert record.annual_used == 0.0
    assert record.version == 1


async def test_cancel_twice_rejected(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    request = await _submit(async_client)
    await async_client.post(f"{BASE_URL}/{request['id']}/cancel", headers=EMPLOYEE_HEADERS)

    resp = await async_client.post(f"{BASE_URL}/{request['id']}/cancel", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 400


async def test_employee_cannot_cancel_started_leave(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    request = await _submit(async_client)
    await async_client.post(f"{BASE_URL}/{request['id']}/approve", headers=MANAGER_HEADERS)

    resp = await async_client.post(f"{BASE_URL}/{request['id']}/cancel", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 400


async def test_other_employee_cannot_cancel(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    request = await _submit(async_client)

    resp = await async_client.post(f"{BASE_URL}/{request['id']}/cancel", headers=OTHER_HEADERS)
    assert resp.status_code == 403


async def test_cancel_rereads_request_cancelled_elsewhere(async_client: AsyncClient, db_session: AsyncSession) -> None:
    record = await add_balance(db_session)
    request = await _submit(async_client)
    await async_client.post(f"{BASE_URL}/{request['id']}/approve", headers=MANAGER_HEADERS)

    # Another transaction cancels and restores; the session still holds the approved copy.
    await db_session.execute(
        update(LeaveRequest)
        .where(col(LeaveRequest.id) == uuid.UUID(request["id"]))
        .values(status="cancelled", balance_updated=False)
        .execution_options(synchronize_session=False)
    )
    await db_session.commit()

    resp = await async_client.post(f"{BASE_URL}/{request['id']}/cancel", headers=MANAGER_HEADERS)
    assert resp.status_code == 400

    await db_session.refresh(record)
    assert record.annual_used == 5.0
    assert record.version == 2


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


async def test_get_request_visibility(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    request = await _submit(async_client)
    url = f"{BASE_URL}/{request['id']}"

    assert (await async_client.get(url, headers=EMPLOYEE_HEADERS)).status_code == 200
    assert (await async_client.get(url, headers=MANAGER_HEADERS)).status_code == 200
    assert (await async_client.get(url, headers=ADMIN_HEADERS)).status_code == 200
    assert (await async_client.get(url, headers=OTHER_HEADERS)).status_code == 403


async def test_get_missing_request(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{BASE_URL}/{uuid.uuid4()}", headers=ADMIN_HEADERS)
    assert resp.status_code == 404


async def test_list_requests_scoped_by_role(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    await add_balance(db_session, employee_email="bob@example.com", employee_name="Bob", manager_email=None)
    await _submit(async_client)
    await _submit(async_client, headers=OTHER_HEADERS)

    own = await async_client.get(BASE_URL, headers=EMPLOYEE_HEADERS)
    assert own.json()["total"] == 1
    assert own.json()["items"][0]["requester_email"] == EMPLOYEE_EMAIL

    managed = await async_client.get(BASE_URL, headers=MANAGER_HEADERS)
    assert managed.json()["total"] == 1

    everything = await async_client.get(BASE_URL, headers=ADMIN_HEADERS)
    assert everything.json()["total"] == 2


async def test_list_requests_filters(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)
    await add_balance(db_session, employee_email="bob@example.com", employee_name="Bob")
    first = await _submit(async_client)
    await _submit(async_client, headers=OTHER_HEADERS)
    await async_client.post(f"{BASE_URL}/{first['id']}/approve", headers=ADMIN_HEADERS)

    approved = await async_client.get(BASE_URL, params={"status": "approved"}, headers=ADMIN_HEADERS)
    assert [item["id"] for item in approved.json()["items"]] == [first["id"]]

    by_requester = await async_client.get(
        BASE_URL, params={"requester_email": "bob@example.com"}, headers=ADMIN_HEADERS
    )
    assert by_requester.json()["total"] == 1
    assert by_requester.json()["items"][0]["requester_email"] == "bob@example.com"
