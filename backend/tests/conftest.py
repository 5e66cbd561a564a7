from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from leave_engine.db import get_session
from leave_engine.main import app
from leave_engine.models import EmployeeBalance, SQLModel
from leave_engine.services.notification import InMemoryNotificationSink, set_notification_sink
from leave_engine.services.system import SystemState, set_system_state

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from typing import Any

    from sqlalchemy.ext.asyncio import AsyncEngine

TEST_DATABASE_URL = "sqlite+aiosqlite://"

ADMIN_EMAIL = "admin@example.com"
MANAGER_EMAIL = "manager@example.com"
EMPLOYEE_EMAIL = "jane@example.com"

ADMIN_HEADERS = {"X-User-Email": ADMIN_EMAIL, "X-Role": "admin"}
MANAGER_HEADERS = {"X-User-Email": MANAGER_EMAIL, "X-Role": "manager"}
EMPLOYEE_HEADERS = {"X-User-Email": EMPLOYEE_EMAIL, "X-Role": "employee"}


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """A fresh in-memory SQLite database per test, with all tables created."""
    _engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a session on the test database."""
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def notification_sink() -> Iterator[InMemoryNotificationSink]:
    """A fresh in-memory notification sink for every test."""
    sink = InMemoryNotificationSink()
    set_notification_sink(sink)
    yield sink
    set_notification_sink(InMemoryNotificationSink())


@pytest.fixture(autouse=True)
def system_state() -> Iterator[SystemState]:
    """Maintenance mode off at the start of every test."""
    state = SystemState(maintenance_mode=False)
    set_system_state(state)
    yield state
    set_system_state(None)


def make_balance(**overrides: Any) -> EmployeeBalance:
    """Build an unsaved balance record with sensible defaults."""
    fields: dict[str, Any] = {
        "employee_email": EMPLOYEE_EMAIL,
        "employee_name": "Jane Doe",
        "department": "Engineering",
        "manager_email": MANAGER_EMAIL,
        "year": 2024,
        "start_date": date(2020, 3, 1),
    }
    fields.update(overrides)
    return EmployeeBalance(**fields)


async def add_balance(session: AsyncSession, **overrides: Any) -> EmployeeBalance:
    """Persist a balance record and return it."""
    record = make_balance(**overrides)
    session.add(record)
    await session.commit()
    await session.refresh(record)
    return record
