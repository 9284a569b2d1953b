"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  The production models are portable (plain
``Date`` and ``Enum`` columns), so the real metadata is created directly.
Every test gets its own engine and therefore an empty database.
"""

from datetime import date
from typing import AsyncGenerator

import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from src.domain.enums import MaintenanceOrderStatus, ScheduleStatus, VehicleStatus
from src.infrastructure.database import Base
from src.infrastructure.models import (
    DriverModel,
    MaintenanceOrderModel,
    VehicleModel,
    VehicleScheduleModel,
)


# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create tables on a fresh in-memory database and yield a session factory."""
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def fleet(session_factory) -> dict:
    """
    A small fleet on 2024-06-10:

    * vehicle 1 (idle) with a maintenance order starting today;
    * vehicle 2 (active, driver 1) whose schedule ended yesterday;
    * vehicle 3 (idle) with a schedule for driver 2 starting today.
    """
    async with session_factory() as session:
        d1 = DriverModel(name="Ana López", email="ana@example.com")
        d2 = DriverModel(name="Carlos Méndez", email="carlos@example.com")
        session.add_all([d1, d2])
        await session.flush()

        v1 = VehicleModel(name="Pickup 01", status=VehicleStatus.IDLE)
        v2 = VehicleModel(
            name="Pickup 02", status=VehicleStatus.ACTIVE, assigned_driver_id=d1.id
        )
        v3 = VehicleModel(name="Van 01", status=VehicleStatus.IDLE)
        session.add_all([v1, v2, v3])
        await session.flush()

        order = MaintenanceOrderModel(
            vehicle_id=v1.id,
            status=MaintenanceOrderStatus.SCHEDULED,
            start_date=date(2024, 6, 10),
            estimated_completion_date=date(2024, 6, 12),
        )
        ending = VehicleScheduleModel(
            vehicle_id=v2.id,
            driver_id=d1.id,
            status=ScheduleStatus.ACTIVE,
            start_date=date(2024, 6, 1),
            end_date=date(2024, 6, 9),
        )
        starting = VehicleScheduleModel(
            vehicle_id=v3.id,
            driver_id=d2.id,
            status=ScheduleStatus.SCHEDULED,
            start_date=date(2024, 6, 10),
            end_date=date(2024, 6, 20),
        )
        session.add_all([order, ending, starting])
        await session.commit()

        return {
            "drivers": (d1.id, d2.id),
            "vehicles": (v1.id, v2.id, v3.id),
            "order": order.id,
            "ending_schedule": ending.id,
            "starting_schedule": starting.id,
            "today": date(2024, 6, 10),
        }
