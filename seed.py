"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates, relative to the fleet's local today:
  - 5 sample drivers
  - 6 sample vehicles (all ``idle``; the first pass derives their status)
  - 4 maintenance orders (one due today, one running, one future, one
    awaiting authorisation)
  - 5 vehicle schedules (one due today, one running, one ended yesterday,
    two future)

Start the API afterwards (or call ``POST /api/v1/admin/reconcile``) to see
the engine bring the vehicles in line with the calendar.
"""

import asyncio
from datetime import timedelta

from sqlalchemy import func, select

from src.config import settings
from src.domain.dates import local_today
from src.domain.enums import MaintenanceOrderStatus, ScheduleStatus, VehicleStatus
from src.infrastructure.database import async_session_factory, engine
from src.infrastructure.models import (
    DriverModel,
    MaintenanceOrderModel,
    VehicleModel,
    VehicleScheduleModel,
)


DRIVERS = [
    {"name": "Ana López", "email": "ana.lopez@example.com", "id_number": "2547 81234 0101"},
    {"name": "Carlos Méndez", "email": "carlos.mendez@example.com", "id_number": "1987 45612 0101"},
    {"name": "Lucía Herrera", "email": "lucia.herrera@example.com", "id_number": "3021 77845 0108"},
    {"name": "Jorge Castillo", "email": "jorge.castillo@example.com", "id_number": "2210 98451 0115"},
    {"name": "María Ajú", "email": "maria.aju@example.com", "id_number": "2674 11209 0901"},
]

VEHICLES = [
    {"name": "Pickup 01", "make": "Toyota", "model": "Hilux", "year": 2021, "license_plate": "P-123ABC"},
    {"name": "Pickup 02", "make": "Toyota", "model": "Hilux", "year": 2022, "license_plate": "P-456DEF"},
    {"name": "Van 01", "make": "Nissan", "model": "Urvan", "year": 2020, "license_plate": "P-789GHI"},
    {"name": "Van 02", "make": "Hyundai", "model": "H-1", "year": 2019, "license_plate": "P-321JKL"},
    {"name": "Truck 01", "make": "Isuzu", "model": "NPR", "year": 2018, "license_plate": "C-654MNO"},
    {"name": "Sedan 01", "make": "Kia", "model": "Rio", "year": 2023, "license_plate": "P-987PQR"},
]


async def seed():
    today = local_today(settings.fleet_timezone)
    day = timedelta(days=1)

    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(select(func.count()).select_from(VehicleModel))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Drivers ───────────────────────────────────────────────────
        drivers = [DriverModel(**d) for d in DRIVERS]
        session.add_all(drivers)
        await session.flush()
        print(f"  Created {len(drivers)} drivers")

        # ── Vehicles ──────────────────────────────────────────────────
        vehicles = [VehicleModel(**v, status=VehicleStatus.IDLE) for v in VEHICLES]
        session.add_all(vehicles)
        await session.flush()
        print(f"  Created {len(vehicles)} vehicles")

        # ── Maintenance orders ────────────────────────────────────────
        orders = [
            # Starts today: activates on the next pass
            MaintenanceOrderModel(
                vehicle_id=vehicles[0].id,
                status=MaintenanceOrderStatus.SCHEDULED,
                start_date=today,
                estimated_completion_date=today + 2 * day,
                type="Preventive",
                location="Main workshop",
                description="10,000 km service",
            ),
            # Ran past its estimate: completes on the next pass
            MaintenanceOrderModel(
                vehicle_id=vehicles[4].id,
                status=MaintenanceOrderStatus.ACTIVE,
                start_date=today - 5 * day,
                estimated_completion_date=today - day,
                urgent=True,
                type="Corrective",
                location="Dealer",
                description="Brake pads and discs",
                cost=1850.0,
                quotation_details="Dealer quotation #4471",
            ),
            MaintenanceOrderModel(
                vehicle_id=vehicles[2].id,
                status=MaintenanceOrderStatus.SCHEDULED,
                start_date=today + 10 * day,
                estimated_completion_date=today + 12 * day,
                type="Preventive",
                location="Main workshop",
                description="Tyre rotation",
            ),
            MaintenanceOrderModel(
                vehicle_id=vehicles[3].id,
                status=MaintenanceOrderStatus.PENDING_AUTHORIZATION,
                start_date=today + 3 * day,
                estimated_completion_date=today + 4 * day,
                type="Corrective",
                location="Body shop",
                description="Rear bumper repair",
            ),
        ]
        session.add_all(orders)
        await session.flush()
        for o in orders:
            o.order_number = f"MO-{o.id:06d}"
        print(f"  Created {len(orders)} maintenance orders")

        # ── Vehicle schedules ─────────────────────────────────────────
        schedules = [
            # Due today on a vehicle entering maintenance: claims the driver only
            VehicleScheduleModel(
                vehicle_id=vehicles[0].id,
                driver_id=drivers[0].id,
                status=ScheduleStatus.SCHEDULED,
                start_date=today,
                end_date=today + 6 * day,
            ),
            VehicleScheduleModel(
                vehicle_id=vehicles[1].id,
                driver_id=drivers[1].id,
                status=ScheduleStatus.ACTIVE,
                start_date=today - 3 * day,
                end_date=today + 3 * day,
            ),
            # Ended yesterday: completes, vehicle goes idle
            VehicleScheduleModel(
                vehicle_id=vehicles[5].id,
                driver_id=drivers[2].id,
                status=ScheduleStatus.ACTIVE,
                start_date=today - 7 * day,
                end_date=today - day,
            ),
            VehicleScheduleModel(
                vehicle_id=vehicles[2].id,
                driver_id=drivers[3].id,
                status=ScheduleStatus.SCHEDULED,
                start_date=today + day,
                end_date=today + 5 * day,
            ),
            VehicleScheduleModel(
                vehicle_id=vehicles[5].id,
                driver_id=drivers[4].id,
                status=ScheduleStatus.SCHEDULED,
                start_date=today + 2 * day,
                end_date=today + 9 * day,
            ),
        ]
        session.add_all(schedules)
        await session.flush()
        print(f"  Created {len(schedules)} vehicle schedules")

        # Running records already own their vehicles
        vehicles[1].status = VehicleStatus.ACTIVE
        vehicles[1].assigned_driver_id = drivers[1].id
        vehicles[4].status = VehicleStatus.MAINTENANCE
        vehicles[5].status = VehicleStatus.ACTIVE
        vehicles[5].assigned_driver_id = drivers[2].id

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
