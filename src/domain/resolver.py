"""
Vehicle State Resolver
======================

Derives a vehicle's operational status and assigned driver from the records
that place demands on it, using the fixed priority rule::

    maintenance  >  active schedule  >  idle

* **maintenance** -- any maintenance order for the vehicle in ``active`` or
  ``scheduled`` status.
* **active** -- any ``active`` vehicle schedule; the vehicle takes that
  schedule's driver.
* **idle** -- otherwise.  A pending ``scheduled`` schedule still resolves to
  idle; it activates itself on its own start date.

The record currently being completed is passed as *exclude* so it does not
justify the state it is leaving.  Records are matched by kind *and* id,
since ids of different tables can collide.

Tie-break
---------
Overlap validation should leave at most one qualifying record per level.
When bad data produces several, the one with the earliest start date wins;
equal (or unparsable, sorted last) start dates keep the query order of the
input collection.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Optional

from .dates import to_day
from .entities import MaintenanceOrder, VehicleSchedule
from .enums import (
    MaintenanceOrderStatus,
    ScheduleStatus,
    VehicleStatus,
    status_value,
)


@dataclass(frozen=True)
class VehicleState:
    status: VehicleStatus
    driver_id: Optional[int] = None
    source: Any = None  # record justifying the state, if any


def _is_excluded(record, exclude) -> bool:
    return (
        exclude is not None
        and type(record) is type(exclude)
        and record.id == exclude.id
    )


def _earliest_first(records: list) -> list:
    return sorted(records, key=lambda r: to_day(r.start_date) or date.max)


def _candidates(records: Iterable, vehicle_id: int, statuses: set, exclude) -> list:
    wanted = {status_value(s) for s in statuses}
    return _earliest_first(
        [
            r
            for r in records
            if r.vehicle_id == vehicle_id
            and status_value(r.status) in wanted
            and not _is_excluded(r, exclude)
        ]
    )


def resolve_vehicle_status(
    vehicle_id: int,
    exclude: Optional[MaintenanceOrder | VehicleSchedule],
    maintenance_orders: Iterable[MaintenanceOrder],
    schedules: Iterable[VehicleSchedule],
) -> VehicleState:
    """Return the status and driver *vehicle_id* should have."""
    orders = _candidates(
        maintenance_orders,
        vehicle_id,
        {MaintenanceOrderStatus.ACTIVE, MaintenanceOrderStatus.SCHEDULED},
        exclude,
    )
    if orders:
        return VehicleState(VehicleStatus.MAINTENANCE, None, orders[0])

    schedules = list(schedules)
    active = _candidates(schedules, vehicle_id, {ScheduleStatus.ACTIVE}, exclude)
    if active:
        return VehicleState(VehicleStatus.ACTIVE, active[0].driver_id, active[0])

    upcoming = _candidates(schedules, vehicle_id, {ScheduleStatus.SCHEDULED}, exclude)
    return VehicleState(VehicleStatus.IDLE, None, upcoming[0] if upcoming else None)
