"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  The ``to_*`` helpers turn ORM rows into the
plain domain entities the reconciliation engine works on.
"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    DriverModel,
    MaintenanceOrderModel,
    VehicleModel,
    VehicleScheduleModel,
)
from src.domain.entities import Driver, MaintenanceOrder, Vehicle, VehicleSchedule


# ── Row -> entity ─────────────────────────────────────────────────────


def to_driver(m: DriverModel) -> Driver:
    return Driver(id=m.id, name=m.name, email=m.email, id_number=m.id_number)


def to_vehicle(m: VehicleModel) -> Vehicle:
    return Vehicle(
        id=m.id,
        name=m.name,
        status=m.status,
        assigned_driver_id=m.assigned_driver_id,
    )


def to_maintenance_order(m: MaintenanceOrderModel) -> MaintenanceOrder:
    return MaintenanceOrder(
        id=m.id,
        vehicle_id=m.vehicle_id,
        status=m.status,
        start_date=m.start_date,
        estimated_completion_date=m.estimated_completion_date,
        urgent=m.urgent,
        order_number=m.order_number,
        cost=m.cost,
        quotation_details=m.quotation_details,
        comments=m.comments,
    )


def to_vehicle_schedule(m: VehicleScheduleModel) -> VehicleSchedule:
    return VehicleSchedule(
        id=m.id,
        vehicle_id=m.vehicle_id,
        driver_id=m.driver_id,
        status=m.status,
        start_date=m.start_date,
        end_date=m.end_date,
    )


# ── Repositories ──────────────────────────────────────────────────────


class VehicleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, vehicle: VehicleModel) -> VehicleModel:
        self.session.add(vehicle)
        await self.session.flush()
        await self.session.refresh(vehicle)
        return vehicle

    async def get_by_id(self, vehicle_id: int) -> Optional[VehicleModel]:
        return await self.session.get(VehicleModel, vehicle_id)

    async def get_for_update(self, vehicle_id: int) -> Optional[VehicleModel]:
        """SELECT ... FOR UPDATE: serialises creations racing for one vehicle."""
        result = await self.session.execute(
            select(VehicleModel)
            .where(VehicleModel.id == vehicle_id)
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[VehicleModel]:
        result = await self.session.execute(
            select(VehicleModel).order_by(VehicleModel.id)
        )
        return list(result.scalars().all())

    async def list_assigned_to(self, driver_id: int) -> list[VehicleModel]:
        result = await self.session.execute(
            select(VehicleModel).where(VehicleModel.assigned_driver_id == driver_id)
        )
        return list(result.scalars().all())


class DriverRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, driver: DriverModel) -> DriverModel:
        self.session.add(driver)
        await self.session.flush()
        await self.session.refresh(driver)
        return driver

    async def get_by_id(self, driver_id: int) -> Optional[DriverModel]:
        return await self.session.get(DriverModel, driver_id)

    async def get_by_email(self, email: str) -> Optional[DriverModel]:
        result = await self.session.execute(
            select(DriverModel).where(DriverModel.email == email)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[DriverModel]:
        result = await self.session.execute(
            select(DriverModel).order_by(DriverModel.id)
        )
        return list(result.scalars().all())

    async def delete(self, driver: DriverModel) -> None:
        await self.session.delete(driver)
        await self.session.flush()


class MaintenanceOrderRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, order: MaintenanceOrderModel) -> MaintenanceOrderModel:
        self.session.add(order)
        await self.session.flush()
        if order.order_number is None:
            order.order_number = f"MO-{order.id:06d}"
            await self.session.flush()
        await self.session.refresh(order)
        return order

    async def get_by_id(self, order_id: int) -> Optional[MaintenanceOrderModel]:
        return await self.session.get(MaintenanceOrderModel, order_id)

    async def find(
        self,
        vehicle_id: Optional[int] = None,
        statuses: Optional[Iterable[str]] = None,
    ) -> list[MaintenanceOrderModel]:
        query = select(MaintenanceOrderModel).order_by(
            MaintenanceOrderModel.start_date, MaintenanceOrderModel.id
        )
        if vehicle_id is not None:
            query = query.where(MaintenanceOrderModel.vehicle_id == vehicle_id)
        if statuses:
            query = query.where(MaintenanceOrderModel.status.in_(list(statuses)))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def delete(self, order: MaintenanceOrderModel) -> None:
        await self.session.delete(order)
        await self.session.flush()


class VehicleScheduleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, schedule: VehicleScheduleModel) -> VehicleScheduleModel:
        self.session.add(schedule)
        await self.session.flush()
        await self.session.refresh(schedule)
        return schedule

    async def get_by_id(self, schedule_id: int) -> Optional[VehicleScheduleModel]:
        return await self.session.get(VehicleScheduleModel, schedule_id)

    async def find(
        self,
        vehicle_id: Optional[int] = None,
        statuses: Optional[Iterable[str]] = None,
        driver_id: Optional[int] = None,
    ) -> list[VehicleScheduleModel]:
        query = select(VehicleScheduleModel).order_by(
            VehicleScheduleModel.start_date, VehicleScheduleModel.id
        )
        if vehicle_id is not None:
            query = query.where(VehicleScheduleModel.vehicle_id == vehicle_id)
        if driver_id is not None:
            query = query.where(VehicleScheduleModel.driver_id == driver_id)
        if statuses:
            query = query.where(VehicleScheduleModel.status.in_(list(statuses)))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def delete(self, schedule: VehicleScheduleModel) -> None:
        await self.session.delete(schedule)
        await self.session.flush()
