"""Pytest fixtures for payroll consolidation tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from payroll_consolidation.api.app import create_app
from payroll_consolidation.api.dependencies import get_db_session
from payroll_consolidation.collaborators import InMemoryEmployeeDirectory
from payroll_consolidation.models import Base, EarningRecord, RecordAdjustment
from payroll_consolidation.services.record_store import RecordStore

# In-memory SQLite shared by every session of one test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    """Create a fresh test database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def employee_id() -> UUID:
    return uuid4()


@pytest.fixture
def employer_id() -> UUID:
    return uuid4()


@pytest.fixture
def directory() -> InMemoryEmployeeDirectory:
    return InMemoryEmployeeDirectory()


@pytest.fixture
def make_shift(
    session: AsyncSession, employee_id: UUID, employer_id: UUID
) -> Callable[..., Awaitable[EarningRecord]]:
    """Factory for stored pending shift records."""

    async def _make(**overrides: Any) -> EarningRecord:
        fields: dict[str, Any] = {
            "kind": "shift",
            "employee_id": employee_id,
            "employer_id": employer_id,
            "employee_name": "Alva Berg",
            "employer_name": "Norrsken Care AB",
            "pay_period": "2024-05",
            "hours_worked": Decimal("8"),
            "hourly_rate": Decimal("200"),
            "ob_premium_total": Decimal("150"),
            "ob_breakdown": {"ob_75_hours": Decimal("3.5")},
            "item_title": "Evening shift",
        }
        fields.update(overrides)
        return await RecordStore(session).create_record(**fields)

    return _make


@pytest.fixture
def make_engagement(
    session: AsyncSession, employee_id: UUID, employer_id: UUID
) -> Callable[..., Awaitable[EarningRecord]]:
    """Factory for stored pending engagement records."""

    async def _make(**overrides: Any) -> EarningRecord:
        fields: dict[str, Any] = {
            "kind": "engagement",
            "employee_id": employee_id,
            "employer_id": employer_id,
            "employee_name": "Alva Berg",
            "employer_name": "Norrsken Care AB",
            "pay_period": "2024-05",
            "agreed_compensation": Decimal("1800"),
            "item_title": "Inventory weekend",
        }
        fields.update(overrides)
        return await RecordStore(session).create_record(**fields)

    return _make


def transient_shift(
    employee_id: UUID,
    *,
    pay_period: str = "2024-05",
    hours: str = "8",
    rate: str = "200",
    ob: str = "150",
    adjustments: tuple[tuple[str, str], ...] = (),
    **extra: Any,
) -> EarningRecord:
    """Unsaved shift record for pure calculation tests."""
    record = EarningRecord(
        earning_record_id=uuid4(),
        kind="shift",
        employee_id=employee_id,
        pay_period=pay_period,
        hours_worked=Decimal(hours),
        hourly_rate=Decimal(rate),
        ob_premium_total=Decimal(ob),
        adjustments=[
            RecordAdjustment(reason=reason, amount=Decimal(amount), position=i)
            for i, (reason, amount) in enumerate(adjustments)
        ],
        status="pending",
        **extra,
    )
    return record


def transient_engagement(
    employee_id: UUID,
    *,
    pay_period: str = "2024-05",
    compensation: str = "1800",
    adjustments: tuple[tuple[str, str], ...] = (),
    **extra: Any,
) -> EarningRecord:
    """Unsaved engagement record for pure calculation tests."""
    return EarningRecord(
        earning_record_id=uuid4(),
        kind="engagement",
        employee_id=employee_id,
        pay_period=pay_period,
        agreed_compensation=Decimal(compensation),
        adjustments=[
            RecordAdjustment(reason=reason, amount=Decimal(amount), position=i)
            for i, (reason, amount) in enumerate(adjustments)
        ],
        status="pending",
        **extra,
    )


@pytest.fixture
def build_shift() -> Callable[..., EarningRecord]:
    return transient_shift


@pytest.fixture
def build_engagement() -> Callable[..., EarningRecord]:
    return transient_engagement


@pytest_asyncio.fixture
async def client(session_factory, directory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to an app that uses the test database."""
    app = create_app(directory)

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
