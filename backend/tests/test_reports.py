"""Tests for audit log queries and balance summaries."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from conftest import ADMIN_EMAIL, ADMIN_HEADERS, EMPLOYEE_EMAIL, MANAGER_HEADERS, add_balance

from leave_engine.models.enums import AuditAction, AuditEntityType
from leave_engine.services.audit import write_audit_log
from leave_engine.services.report import get_balance_summary, query_audit_log

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

AUDIT_URL = "/audit"
SUMMARY_URL = "/reports/balances"


async def _seed_audit(session: AsyncSession) -> None:
    await write_audit_log(
        session,
        actor_email=ADMIN_EMAIL,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id="holiday-1",
        action=AuditAction.CREATE,
        after_json={"name": "New Year"},
    )
    await write_audit_log(
        session,
        actor_email="manager@example.com",
        entity_type=AuditEntityType.BALANCE,
        entity_id="balance-1",
        action=AuditAction.UPDATE,
        before_json={"forfeited": 0.0},
        after_json={"forfeited": 1.0},
    )
    await write_audit_log(
        session,
        actor_email=ADMIN_EMAIL,
        entity_type=AuditEntityType.BALANCE,
        entity_id="balance-1",
        action=AuditAction.APPROVE,
    )
    await session.commit()


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------


async def test_query_audit_log_all(db_session: AsyncSession) -> None:
    await _seed_audit(db_session)
    result = await query_audit_log(db_session)
    assert result.total == 3


async def test_query_audit_log_filters(db_session: AsyncSession) -> None:
    await _seed_audit(db_session)

    assert (await query_audit_log(db_session, entity_type="BALANCE")).total == 2
    assert (await query_audit_log(db_session, entity_id="balance-1", action="UPDATE")).total == 1
    assert (await query_audit_log(db_session, actor_email=ADMIN_EMAIL)).total == 2


async def test_query_audit_log_date_range(db_session: AsyncSession) -> None:
    await _seed_audit(db_session)

    assert (await query_audit_log(db_session, start_date=date(2000, 1, 1))).total == 3
    assert (await query_audit_log(db_session, start_date=date(2999, 1, 1))).total == 0
    assert (await query_audit_log(db_session, end_date=date(2000, 1, 1))).total == 0


async def test_query_audit_log_pagination(db_session: AsyncSession) -> None:
    await _seed_audit(db_session)
    result = await query_audit_log(db_session, offset=1, limit=1)
    assert result.total == 3
    assert len(result.items) == 1


async def test_audit_endpoint(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await _seed_audit(db_session)

    resp = await async_client.get(AUDIT_URL, params={"entity_type": "HOLIDAY"}, headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 1
    assert data["items"][0]["after_json"] == {"name": "New Year"}


async def test_audit_endpoint_admin_only(async_client: AsyncClient) -> None:
    resp = await async_client.get(AUDIT_URL, headers=MANAGER_HEADERS)
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Balance summary
# ---------------------------------------------------------------------------


async def test_balance_summary(db_session: AsyncSession) -> None:
    await add_balance(db_session, brought_forward=2.0, sick_used=6.0)
    await add_balance(db_session, employee_email="bob@example.com", employee_name="Bob", department="Sales")

    summary = await get_balance_summary(db_session, 2024, today=date(2024, 6, 1))

    assert summary.total == 2
    assert [item.employee_name for item in summary.items] == ["Bob", "Jane Doe"]
    jane = summary.items[1]
    assert jane.employee_email == EMPLOYEE_EMAIL
    assert jane.balances["sick"] == 30.0
    # Five complete months from an earlier start year.
    assert jane.balances["annual"] == 10.335
    assert set(jane.balances) == {
        "annual",
        "sick",
        "maternity",
        "parental",
        "family",
        "adoption",
        "study",
        "wellness",
    }


async def test_balance_summary_department_filter(db_session: AsyncSession) -> None:
    await add_balance(db_session)
    await add_balance(db_session, employee_email="bob@example.com", employee_name="Bob", department="Sales")

    summary = await get_balance_summary(db_session, 2024, department="Sales", today=date(2024, 6, 1))
    assert [item.employee_email for item in summary.items] == ["bob@example.com"]


async def test_balance_summary_endpoint(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await add_balance(db_session)

    resp = await async_client.get(SUMMARY_URL, params={"year": 2024}, headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["year"] == 2024
    assert data["total"] == 1
    assert data["items"][0]["balances"]["annual"] == 18.337
