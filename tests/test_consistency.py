"""Unit tests for the vehicle / driver assignment audit."""

from src.domain.consistency import audit_vehicle_assignments
from src.domain.entities import Vehicle, VehicleSchedule
from src.domain.enums import ScheduleStatus, TargetKind, VehicleStatus


def _active_schedule(id, vehicle_id, driver_id):
    return VehicleSchedule(
        id=id,
        vehicle_id=vehicle_id,
        driver_id=driver_id,
        status=ScheduleStatus.ACTIVE,
        start_date="2024-06-01",
        end_date="2024-06-30",
    )


def test_active_without_driver_takes_schedule_driver():
    vehicle = Vehicle(id=1, status=VehicleStatus.ACTIVE)
    [update] = audit_vehicle_assignments([vehicle], [_active_schedule(7, 1, 4)])
    assert update.target is TargetKind.VEHICLE
    assert update.fields == {"assigned_driver_id": 4}
    assert "schedule 7" in update.reason


def test_active_without_driver_or_schedule_goes_idle():
    [update] = audit_vehicle_assignments([Vehicle(id=1, status=VehicleStatus.ACTIVE)], [])
    assert update.fields == {"status": VehicleStatus.IDLE}


def test_idle_with_driver_is_unassigned():
    [update] = audit_vehicle_assignments([Vehicle(id=1, assigned_driver_id=3)], [])
    assert update.fields == {"assigned_driver_id": None}


def test_maintenance_keeps_driver_claimed_by_active_schedule():
    vehicle = Vehicle(id=1, status=VehicleStatus.MAINTENANCE, assigned_driver_id=4)
    assert audit_vehicle_assignments([vehicle], [_active_schedule(7, 1, 4)]) == []


def test_maintenance_with_unclaimed_driver_is_unassigned():
    vehicle = Vehicle(id=1, status=VehicleStatus.MAINTENANCE, assigned_driver_id=4)
    # The active schedule belongs to another vehicle
    [update] = audit_vehicle_assignments([vehicle], [_active_schedule(7, 2, 4)])
    assert update.fields == {"assigned_driver_id": None}


def test_consistent_fleet_needs_nothing():
    vehicles = [
        Vehicle(id=1, status=VehicleStatus.ACTIVE, assigned_driver_id=4),
        Vehicle(id=2),
        Vehicle(id=3, status=VehicleStatus.MAINTENANCE),
    ]
    assert audit_vehicle_assignments(vehicles, [_active_schedule(7, 1, 4)]) == []
