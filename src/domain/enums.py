"""Domain enumerations and state-transition rules."""

import enum


class MaintenanceOrderStatus(str, enum.Enum):
    PENDING_AUTHORIZATION = "pending_authorization"
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"


class ScheduleStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"


class VehicleStatus(str, enum.Enum):
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    IDLE = "idle"


class TargetKind(str, enum.Enum):
    """Record kinds held by the record store."""

    MAINTENANCE_ORDER = "maintenance_order"
    VEHICLE_SCHEDULE = "vehicle_schedule"
    VEHICLE = "vehicle"
    DRIVER = "driver"  # read-only for the engine


# State machines: map current status -> set of valid next statuses
MAINTENANCE_TRANSITIONS: dict[MaintenanceOrderStatus, set[MaintenanceOrderStatus]] = {
    MaintenanceOrderStatus.PENDING_AUTHORIZATION: {MaintenanceOrderStatus.SCHEDULED},
    MaintenanceOrderStatus.SCHEDULED: {MaintenanceOrderStatus.ACTIVE},
    MaintenanceOrderStatus.ACTIVE: {MaintenanceOrderStatus.COMPLETED},
    MaintenanceOrderStatus.COMPLETED: set(),
}

SCHEDULE_TRANSITIONS: dict[ScheduleStatus, set[ScheduleStatus]] = {
    ScheduleStatus.SCHEDULED: {ScheduleStatus.ACTIVE},
    ScheduleStatus.ACTIVE: {ScheduleStatus.COMPLETED},
    ScheduleStatus.COMPLETED: set(),
}

# Statuses that occupy a slot on the vehicle's calendar
BLOCKING_STATUSES = ("active", "scheduled")


def status_value(status) -> str:
    """Plain string value of a status given as enum member or raw string."""
    return getattr(status, "value", status)
