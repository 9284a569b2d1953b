"""
Maintenance Reconciler
======================

Moves maintenance orders through their date-driven lifecycle and computes
what each move means for the vehicle.

Transitions per order (dates normalised to whole days)::

    scheduled  --start_date <= today-------------------->  active
    active     --today > estimated_completion_date------->  completed

On activation the vehicle goes to ``maintenance`` and loses its driver,
whichever schedule held it.  On completion the driver is cleared and the
vehicle status is re-derived from its schedules only (this order is the
maintenance demand that is ending): an active schedule makes it ``active``
again with that schedule's driver, otherwise it is ``idle``.

Orders in ``pending_authorization`` are never touched.  Orders with
unparsable dates stay where they are.

Complexity: O(M x S) worst case, M = orders with a due transition,
S = schedules in the snapshot.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from .dates import days_between, to_day
from .entities import MaintenanceOrder, Vehicle, VehicleSchedule
from .enums import MaintenanceOrderStatus, TargetKind, VehicleStatus, status_value
from .resolver import resolve_vehicle_status
from .updates import Update, project

logger = logging.getLogger(__name__)


def due_maintenance_status(
    order: MaintenanceOrder, today: date
) -> Optional[MaintenanceOrderStatus]:
    """Return the status *order* should move to today, or ``None``."""
    start = to_day(order.start_date)
    completion = to_day(order.estimated_completion_date)
    if start is None or completion is None:
        return None

    if order.status == MaintenanceOrderStatus.SCHEDULED and start <= today:
        return MaintenanceOrderStatus.ACTIVE
    if order.status == MaintenanceOrderStatus.ACTIVE and today > completion:
        return MaintenanceOrderStatus.COMPLETED
    return None


def reconcile_maintenance_orders(
    orders: Sequence[MaintenanceOrder],
    vehicles: Sequence[Vehicle],
    today: date,
    schedules: Sequence[VehicleSchedule] = (),
) -> list[Update]:
    """Compute order and vehicle updates for every order due a transition."""
    updates: list[Update] = []
    vehicles_by_id = {v.id: v for v in vehicles}

    for order in orders:
        new_status = due_maintenance_status(order, today)
        if new_status is None:
            continue

        vehicle = vehicles_by_id.get(order.vehicle_id)
        if vehicle is None:
            logger.warning(
                "Maintenance order %s references unknown vehicle %s; skipping",
                order.id,
                order.vehicle_id,
            )
            continue

        step = [
            Update(
                TargetKind.MAINTENANCE_ORDER,
                order.id,
                {"status": new_status},
                f"Maintenance order status transition: "
                f"{status_value(order.status)} -> {new_status.value}",
            )
        ]

        if new_status is MaintenanceOrderStatus.ACTIVE:
            vehicle_update = _on_activation(vehicle)
        else:
            vehicle_update = _on_completion(order, vehicle, schedules, today)
        if vehicle_update is not None:
            step.append(vehicle_update)

        updates.extend(step)
        vehicles_by_id[vehicle.id] = project([vehicle], step, TargetKind.VEHICLE)[0]

    if updates:
        logger.info("Maintenance reconciliation produced %d update(s)", len(updates))
    return updates


def _on_activation(vehicle: Vehicle) -> Optional[Update]:
    fields: dict = {}
    reasons: list[str] = []

    if vehicle.status != VehicleStatus.MAINTENANCE:
        fields["status"] = VehicleStatus.MAINTENANCE
        reasons.append(f"status {status_value(vehicle.status)} -> maintenance")
    if vehicle.assigned_driver_id is not None:
        fields["assigned_driver_id"] = None
        reasons.append(
            f"driver {vehicle.assigned_driver_id} unassigned (maintenance started)"
        )

    if not fields:
        return None
    return Update(
        TargetKind.VEHICLE,
        vehicle.id,
        fields,
        f"Maintenance activation: {', '.join(reasons)}",
    )


def _on_completion(
    order: MaintenanceOrder,
    vehicle: Vehicle,
    schedules: Sequence[VehicleSchedule],
    today: date,
) -> Optional[Update]:
    # Scoped to schedules: this order is the maintenance demand ending.
    state = resolve_vehicle_status(vehicle.id, order, (), schedules)

    fields: dict = {}
    reasons: list[str] = []

    if state.status != vehicle.status:
        fields["status"] = state.status
        reasons.append(f"status {status_value(vehicle.status)} -> {state.status.value}")
    if state.driver_id != vehicle.assigned_driver_id:
        fields["assigned_driver_id"] = state.driver_id
        if state.driver_id is None:
            reasons.append(
                f"driver {vehicle.assigned_driver_id} unassigned (maintenance completed)"
            )
        else:
            reasons.append(
                f"driver {vehicle.assigned_driver_id or 'none'} -> "
                f"{state.driver_id} (from active schedule {state.source.id})"
            )

    if not fields:
        return None
    overdue = days_between(order.estimated_completion_date, today)
    return Update(
        TargetKind.VEHICLE,
        vehicle.id,
        fields,
        f"Maintenance completion ({overdue} day(s) past estimate): {', '.join(reasons)}",
    )
