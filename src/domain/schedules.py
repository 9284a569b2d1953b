"""
Schedule Reconciler
===================

Moves vehicle schedules through their date-driven lifecycle and computes the
vehicle-side effects.

Transitions per schedule (dates normalised to whole days)::

    scheduled  --start_date <= today <= end_date-->  active
    active     --today > end_date------------------>  completed

Unlike maintenance orders, activation checks *both* bounds: a schedule
whose window already passed while it was still ``scheduled`` is left alone.

Activation always records the driver claim on the vehicle.  The vehicle only
becomes ``active`` if it is not in ``maintenance``; maintenance keeps
precedence until the order completes.

Completion clears the driver, then re-derives the vehicle with the full
priority rule (other maintenance > other active schedule > idle).
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from .dates import to_day
from .entities import Driver, MaintenanceOrder, Vehicle, VehicleSchedule
from .enums import ScheduleStatus, TargetKind, VehicleStatus, status_value
from .resolver import resolve_vehicle_status
from .updates import Update, project

logger = logging.getLogger(__name__)


def due_schedule_status(
    schedule: VehicleSchedule, today: date
) -> Optional[ScheduleStatus]:
    """Return the status *schedule* should move to today, or ``None``."""
    start = to_day(schedule.start_date)
    end = to_day(schedule.end_date)
    if start is None or end is None:
        return None

    if schedule.status == ScheduleStatus.SCHEDULED and start <= today <= end:
        return ScheduleStatus.ACTIVE
    if schedule.status == ScheduleStatus.ACTIVE and today > end:
        return ScheduleStatus.COMPLETED
    return None


def reconcile_vehicle_schedules(
    schedules: Sequence[VehicleSchedule],
    today: date,
    *,
    vehicles: Sequence[Vehicle],
    maintenance_orders: Sequence[MaintenanceOrder] = (),
    drivers: Optional[Sequence[Driver]] = None,
) -> list[Update]:
    """
    Compute schedule and vehicle updates for every schedule due a transition.

    *drivers*, when given, is used to skip schedules whose driver no longer
    exists.  Pass ``None`` to skip that check.
    """
    updates: list[Update] = []
    vehicles_by_id = {v.id: v for v in vehicles}
    known_drivers = {d.id for d in drivers} if drivers is not None else None
    # Pass-local view, updated after every transition
    current = list(schedules)

    for schedule in schedules:
        new_status = due_schedule_status(schedule, today)
        if new_status is None:
            continue

        vehicle = vehicles_by_id.get(schedule.vehicle_id)
        if vehicle is None:
            logger.warning(
                "Schedule %s references unknown vehicle %s; skipping",
                schedule.id,
                schedule.vehicle_id,
            )
            continue
        if known_drivers is not None and schedule.driver_id not in known_drivers:
            logger.warning(
                "Schedule %s references unknown driver %s; skipping",
                schedule.id,
                schedule.driver_id,
            )
            continue

        step = [
            Update(
                TargetKind.VEHICLE_SCHEDULE,
                schedule.id,
                {"status": new_status},
                f"Vehicle schedule status transition: "
                f"{status_value(schedule.status)} -> {new_status.value}",
            )
        ]

        if new_status is ScheduleStatus.ACTIVE:
            vehicle_update = _on_activation(schedule, vehicle)
        else:
            vehicle_update = _on_completion(
                schedule, vehicle, maintenance_orders, current
            )
        if vehicle_update is not None:
            step.append(vehicle_update)

        updates.extend(step)
        current = project(current, step, TargetKind.VEHICLE_SCHEDULE)
        vehicles_by_id[vehicle.id] = project([vehicle], step, TargetKind.VEHICLE)[0]

    if updates:
        logger.info("Schedule reconciliation produced %d update(s)", len(updates))
    return updates


def _on_activation(schedule: VehicleSchedule, vehicle: Vehicle) -> Optional[Update]:
    fields: dict = {}
    reasons: list[str] = []

    if vehicle.assigned_driver_id != schedule.driver_id:
        fields["assigned_driver_id"] = schedule.driver_id
        reasons.append(
            f"driver {vehicle.assigned_driver_id or 'none'} -> {schedule.driver_id}"
        )
    if vehicle.status == VehicleStatus.MAINTENANCE:
        reasons.append("status kept as maintenance")
    elif vehicle.status != VehicleStatus.ACTIVE:
        fields["status"] = VehicleStatus.ACTIVE
        reasons.append(f"status {status_value(vehicle.status)} -> active")

    if not fields:
        return None
    return Update(
        TargetKind.VEHICLE,
        vehicle.id,
        fields,
        f"Schedule {schedule.id} activation: {', '.join(reasons)}",
    )


def _on_completion(
    schedule: VehicleSchedule,
    vehicle: Vehicle,
    maintenance_orders: Sequence[MaintenanceOrder],
    schedules: Sequence[VehicleSchedule],
) -> Optional[Update]:
    state = resolve_vehicle_status(vehicle.id, schedule, maintenance_orders, schedules)

    fields: dict = {}
    reasons: list[str] = []

    if state.status != vehicle.status:
        fields["status"] = state.status
        reasons.append(f"status {status_value(vehicle.status)} -> {state.status.value}")
    if state.driver_id != vehicle.assigned_driver_id:
        fields["assigned_driver_id"] = state.driver_id
        if state.driver_id is None:
            reasons.append(f"driver {vehicle.assigned_driver_id} unassigned")
        else:
            reasons.append(
                f"driver {vehicle.assigned_driver_id or 'none'} -> "
                f"{state.driver_id} (from active schedule {state.source.id})"
            )

    if not fields:
        return None
    return Update(
        TargetKind.VEHICLE,
        vehicle.id,
        fields,
        f"Schedule {schedule.id} completion: {', '.join(reasons)}",
    )
