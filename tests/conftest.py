"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Pin settings before any other import touches pydantic-settings
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SMTP_HOST", "")

import uuid
from datetime import date, timedelta
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

import leavedesk.leave.models  # noqa: F401
from leavedesk.common.constants import LeaveType
from leavedesk.database import Base, get_db
from leavedesk.leave.repository import SqlAlchemyLeaveRepository
from leavedesk.leave.schemas import LeaveRequestCreate, LeaveRequestOut
from leavedesk.leave.service import LeaveService
from leavedesk.main import create_app
from leavedesk.notifications.service import get_notifier

TEST_DATABASE_URL = "sqlite+aiosqlite://"


# ── Test database (SQLite in-memory) ────────────────────────────────

@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.commit()


@pytest.fixture
def service(db) -> LeaveService:
    return LeaveService(SqlAlchemyLeaveRepository(db))


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Clear slowapi's in-memory counters so tests never share a quota."""
    from leavedesk.common.rate_limit import limiter

    limiter.reset()
    yield


# ── Notifier double ─────────────────────────────────────────────────

class RecordingNotifier:
    """Collects outcome notifications instead of sending email."""

    def __init__(self, fail_with: Optional[Exception] = None) -> None:
        self.calls: list[tuple[str, LeaveRequestOut]] = []
        self.fail_with = fail_with

    async def notify_approved(self, leave: LeaveRequestOut) -> bool:
        self.calls.append(("approved", leave))
        if self.fail_with:
            raise self.fail_with
        return True

    async def notify_rejected(self, leave: LeaveRequestOut) -> bool:
        self.calls.append(("rejected", leave))
        if self.fail_with:
            raise self.fail_with
        return True


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app(session_factory, notifier):
    """Create a fresh app instance with DB and notifier overridden."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    application.dependency_overrides[get_notifier] = lambda: notifier
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user_id: str,
    *,
    name: str = "Test User",
    email: str = "test.user@company.com",
    roles: Optional[list[str]] = None,
) -> str:
    """Token shaped like the frontend session token; signature is not checked."""
    payload = {
        "sub": user_id,
        "name": name,
        "email": email,
        "roles": roles if roles is not None else ["employee"],
    }
    return jwt.encode(payload, "test-secret", algorithm="HS256")


def auth_headers(user_id: str = "emp-1", **kwargs) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, **kwargs)}"}


def manager_headers(user_id: str = "mgr-1") -> dict[str, str]:
    return auth_headers(
        user_id, name="Manager One", email="manager@company.com", roles=["manager"],
    )


# ── Date / payload factories ────────────────────────────────────────

def next_monday(weeks_ahead: int = 0) -> date:
    """A Monday strictly after today."""
    today = date.today()
    return today + timedelta(days=7 - today.weekday() + 7 * weeks_ahead)


def make_create(
    *,
    leave_type: LeaveType = LeaveType.annual,
    reason: str = "Family vacation at the coast",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> LeaveRequestCreate:
    start = start_date or next_monday()
    end = end_date or start + timedelta(days=4)
    return LeaveRequestCreate(
        leave_type=leave_type, reason=reason, start_date=start, end_date=end,
    )


async def seed_request(
    service: LeaveService,
    *,
    employee_id: str = "emp-1",
    employee_name: str = "Employee One",
    employee_email: str = "emp1@company.com",
    **kwargs,
) -> LeaveRequestOut:
    return await service.create_leave_request(
        make_create(**kwargs), employee_id, employee_name, employee_email,
    )


def random_id() -> uuid.UUID:
    return uuid.uuid4()
