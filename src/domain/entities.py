"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``MaintenanceOrder`` and ``VehicleSchedule``: enforces
  forward-only lifecycle transitions
  (PENDING_AUTHORIZATION -> SCHEDULED -> ACTIVE -> COMPLETED).
- ``Vehicle.status`` / ``Vehicle.assigned_driver_id`` are derived state and
  are only changed by the reconciliation engine after creation.

Date fields are kept as loaded (``date``, ``datetime`` or ISO string); the
reconcilers normalise them with :mod:`src.domain.dates` and treat anything
unparsable as "no transition due".
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from .enums import (
    MAINTENANCE_TRANSITIONS,
    SCHEDULE_TRANSITIONS,
    MaintenanceOrderStatus,
    ScheduleStatus,
    VehicleStatus,
)

DateLike = Union[date, datetime, str, None]


class InvalidStateTransition(Exception):
    """Raised when a status change violates a lifecycle state machine."""


class AuthorizationError(ValueError):
    """Raised when a maintenance order is authorised without cost or quotation."""


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Driver:
    id: Optional[int] = None
    name: str = ""
    email: str = ""
    id_number: Optional[str] = None


@dataclass
class Vehicle:
    id: Optional[int] = None
    name: str = ""
    status: VehicleStatus = VehicleStatus.IDLE
    assigned_driver_id: Optional[int] = None


@dataclass
class MaintenanceOrder:
    id: Optional[int] = None
    vehicle_id: Optional[int] = None
    status: MaintenanceOrderStatus = MaintenanceOrderStatus.SCHEDULED
    start_date: DateLike = None
    estimated_completion_date: DateLike = None
    urgent: bool = False
    order_number: Optional[str] = None
    cost: Optional[float] = None
    quotation_details: Optional[str] = None
    comments: Optional[str] = None

    @property
    def end_date(self) -> DateLike:
        """Inclusive end of the order's range, for overlap checks."""
        return self.estimated_completion_date

    def transition_to(self, new_status: MaintenanceOrderStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        allowed = MAINTENANCE_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition maintenance order from {self.status.value} "
                f"to {new_status.value}"
            )
        self.status = new_status

    def authorize(
        self, cost: float, quotation_details: str, comments: Optional[str] = None
    ) -> None:
        """Approve a pending order: records the quotation and schedules it."""
        if cost is None or cost < 0:
            raise AuthorizationError("A non-negative cost is required for authorization")
        if not quotation_details or not quotation_details.strip():
            raise AuthorizationError("Quotation details are required for authorization")
        self.transition_to(MaintenanceOrderStatus.SCHEDULED)
        self.cost = cost
        self.quotation_details = quotation_details.strip()
        self.comments = comments


@dataclass
class VehicleSchedule:
    id: Optional[int] = None
    vehicle_id: Optional[int] = None
    driver_id: Optional[int] = None
    status: ScheduleStatus = ScheduleStatus.SCHEDULED
    start_date: DateLike = None
    end_date: DateLike = None

    def transition_to(self, new_status: ScheduleStatus) -> None:
        allowed = SCHEDULE_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition schedule from {self.status.value} "
                f"to {new_status.value}"
            )
        self.status = new_status
