"""
Generic record store used by the reconciliation engine.

Exposes the two capabilities the engine consumes:

* ``query(kind, filter) -> entities`` -- read every matching record;
* ``update(kind, id, fields)`` -- persist a partial field update.

Every call opens its own session, so each update is an independent unit of
work: one failed write never rolls back another.  ``load_snapshot`` reads
all four tables inside a single transaction.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .models import (
    DriverModel,
    MaintenanceOrderModel,
    VehicleModel,
    VehicleScheduleModel,
)
from .repositories import (
    to_driver,
    to_maintenance_order,
    to_vehicle,
    to_vehicle_schedule,
)
from src.domain.enums import TargetKind
from src.domain.reconciliation import FleetSnapshot


class RecordNotFound(LookupError):
    """Raised when an update targets a record that does not exist."""


class RecordStore(Protocol):
    async def query(
        self, kind: TargetKind, filter: Optional[dict[str, Any]] = None
    ) -> list: ...

    async def update(
        self, kind: TargetKind, record_id: int, fields: dict[str, Any]
    ) -> None: ...


_TABLES = {
    TargetKind.VEHICLE: (VehicleModel, to_vehicle),
    TargetKind.DRIVER: (DriverModel, to_driver),
    TargetKind.MAINTENANCE_ORDER: (MaintenanceOrderModel, to_maintenance_order),
    TargetKind.VEHICLE_SCHEDULE: (VehicleScheduleModel, to_vehicle_schedule),
}


class SqlRecordStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def query(
        self, kind: TargetKind, filter: Optional[dict[str, Any]] = None
    ) -> list:
        """
        Return entities of *kind* in id order.

        *filter* maps column names to a value (equality) or a list / tuple /
        set of values (``IN``).
        """
        async with self.session_factory() as session:
            return await _select(session, kind, filter)

    async def update(
        self, kind: TargetKind, record_id: int, fields: dict[str, Any]
    ) -> None:
        if not fields:
            return
        model, _ = _TABLES[kind]
        async with self.session_factory() as session:
            result = await session.execute(
                update(model).where(model.id == record_id).values(**fields)
            )
            if result.rowcount == 0:
                await session.rollback()
                raise RecordNotFound(f"{kind.value} {record_id} not found")
            await session.commit()

    async def load_snapshot(self) -> FleetSnapshot:
        """Read everything one reconciliation pass needs in one transaction."""
        async with self.session_factory() as session, session.begin():
            return FleetSnapshot(
                vehicles=await _select(session, TargetKind.VEHICLE),
                maintenance_orders=await _select(
                    session, TargetKind.MAINTENANCE_ORDER
                ),
                vehicle_schedules=await _select(session, TargetKind.VEHICLE_SCHEDULE),
                drivers=await _select(session, TargetKind.DRIVER),
            )


async def _select(
    session: AsyncSession, kind: TargetKind, filter: Optional[dict[str, Any]] = None
) -> list:
    model, convert = _TABLES[kind]
    stmt = select(model).order_by(model.id)
    for column, value in (filter or {}).items():
        col = getattr(model, column)
        if isinstance(value, (list, tuple, set, frozenset)):
            stmt = stmt.where(col.in_(list(value)))
        else:
            stmt = stmt.where(col == value)
    result = await session.execute(stmt)
    return [convert(row) for row in result.scalars().all()]
