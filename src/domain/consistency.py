"""
Vehicle / driver assignment audit.

Date-independent repair of assignment drift, run once when the worker starts
(and on demand).  Three inconsistencies are fixed:

* ``active`` vehicle without a driver -- take the driver of its active
  schedule, or fall back to ``idle`` when there is none;
* ``idle`` vehicle with a driver -- unassign the driver;
* ``maintenance`` vehicle with a driver no active schedule of that vehicle
  claims -- unassign the driver.  A driver claimed by an active schedule is
  the claim recorded when the schedule started during maintenance, and is
  kept so it takes over when the maintenance ends.
"""

from __future__ import annotations

import logging
from typing import Sequence

from .entities import Vehicle, VehicleSchedule
from .enums import ScheduleStatus, TargetKind, VehicleStatus
from .updates import Update

logger = logging.getLogger(__name__)


def audit_vehicle_assignments(
    vehicles: Sequence[Vehicle], schedules: Sequence[VehicleSchedule]
) -> list[Update]:
    active_by_vehicle: dict[int, list[VehicleSchedule]] = {}
    for s in schedules:
        if s.status == ScheduleStatus.ACTIVE:
            active_by_vehicle.setdefault(s.vehicle_id, []).append(s)

    updates: list[Update] = []
    for vehicle in vehicles:
        active = active_by_vehicle.get(vehicle.id, [])
        driver = vehicle.assigned_driver_id

        if vehicle.status == VehicleStatus.ACTIVE and driver is None:
            if active:
                updates.append(
                    Update(
                        TargetKind.VEHICLE,
                        vehicle.id,
                        {"assigned_driver_id": active[0].driver_id},
                        f"Assignment audit: active without driver, assigned "
                        f"driver {active[0].driver_id} from schedule {active[0].id}",
                    )
                )
            else:
                updates.append(
                    Update(
                        TargetKind.VEHICLE,
                        vehicle.id,
                        {"status": VehicleStatus.IDLE},
                        "Assignment audit: active without driver or active schedule, "
                        "changed to idle",
                    )
                )
        elif vehicle.status == VehicleStatus.IDLE and driver is not None:
            updates.append(
                Update(
                    TargetKind.VEHICLE,
                    vehicle.id,
                    {"assigned_driver_id": None},
                    f"Assignment audit: idle vehicle had driver {driver}, unassigned",
                )
            )
        elif vehicle.status == VehicleStatus.MAINTENANCE and driver is not None:
            if not any(s.driver_id == driver for s in active):
                updates.append(
                    Update(
                        TargetKind.VEHICLE,
                        vehicle.id,
                        {"assigned_driver_id": None},
                        f"Assignment audit: driver {driver} not claimed by an "
                        f"active schedule during maintenance, unassigned",
                    )
                )

    if updates:
        logger.info("Assignment audit found %d inconsistency(ies)", len(updates))
    return updates
