"""
Reconciliation pass planner
===========================

Two-phase pass over one snapshot of the fleet:

1. **Load** -- the caller reads every vehicle, order and schedule once.
2. **Compute** (this module, pure) --
   a. maintenance reconciler against the snapshot;
   b. the snapshot is *projected* through those updates in memory;
   c. schedule reconciler against the projected snapshot, so a schedule
      starting on the day maintenance starts sees the vehicle already in
      ``maintenance``;
   d. optional assignment audit against the fully projected snapshot;
   e. updates are merged per ``(kind, id)``, last write wins.
3. **Apply** -- :class:`src.infrastructure.applier.UpdateApplier`.

No clock is read here: ``today`` is always passed in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from .consistency import audit_vehicle_assignments
from .entities import Driver, MaintenanceOrder, Vehicle, VehicleSchedule
from .enums import TargetKind
from .maintenance import reconcile_maintenance_orders
from .schedules import reconcile_vehicle_schedules
from .updates import Update, merge_updates, project


@dataclass
class FleetSnapshot:
    vehicles: list[Vehicle] = field(default_factory=list)
    maintenance_orders: list[MaintenanceOrder] = field(default_factory=list)
    vehicle_schedules: list[VehicleSchedule] = field(default_factory=list)
    drivers: Optional[list[Driver]] = None

    def with_updates(self, updates: list[Update]) -> "FleetSnapshot":
        """Snapshot as it will look once *updates* are persisted."""
        return FleetSnapshot(
            vehicles=project(self.vehicles, updates, TargetKind.VEHICLE),
            maintenance_orders=project(
                self.maintenance_orders, updates, TargetKind.MAINTENANCE_ORDER
            ),
            vehicle_schedules=project(
                self.vehicle_schedules, updates, TargetKind.VEHICLE_SCHEDULE
            ),
            drivers=self.drivers,
        )


def plan_reconciliation(
    snapshot: FleetSnapshot, today: date, *, audit: bool = False
) -> list[Update]:
    """Return the merged change set that brings *snapshot* in line with *today*."""
    maintenance_updates = reconcile_maintenance_orders(
        snapshot.maintenance_orders,
        snapshot.vehicles,
        today,
        schedules=snapshot.vehicle_schedules,
    )
    projected = snapshot.with_updates(maintenance_updates)

    schedule_updates = reconcile_vehicle_schedules(
        projected.vehicle_schedules,
        today,
        vehicles=projected.vehicles,
        maintenance_orders=projected.maintenance_orders,
        drivers=projected.drivers,
    )
    updates = maintenance_updates + schedule_updates

    if audit:
        final = projected.with_updates(schedule_updates)
        updates += audit_vehicle_assignments(final.vehicles, final.vehicle_schedules)

    return merge_updates(updates)
