"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, Field, model_validator

from src.domain.enums import MaintenanceOrderStatus, ScheduleStatus, VehicleStatus


class _DateRange(BaseModel):
    @model_validator(mode="after")
    def _check_range(self):
        start, end = self.range_bounds()
        if end < start:
            raise ValueError("end of range must not be before its start")
        return self

    def range_bounds(self) -> tuple[date, date]:
        raise NotImplementedError


# ── Requests ──────────────────────────────────────────────────────────


class DriverCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$", max_length=255)
    id_number: Optional[str] = Field(None, max_length=64)


class VehicleCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    make: Optional[str] = Field(None, max_length=80)
    model: Optional[str] = Field(None, max_length=80)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    license_plate: Optional[str] = Field(None, max_length=32)


class MaintenanceOrderCreateRequest(_DateRange):
    vehicle_id: int
    start_date: date
    estimated_completion_date: date
    urgent: bool = False
    type: Optional[str] = Field(None, max_length=80)
    location: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    requires_authorization: bool = Field(
        False,
        description=(
            "Create the order as pending_authorization; it is ignored by "
            "reconciliation until authorised with a cost and quotation."
        ),
    )

    def range_bounds(self) -> tuple[date, date]:
        return self.start_date, self.estimated_completion_date


class MaintenanceOrderAuthorizeRequest(BaseModel):
    cost: float = Field(..., ge=0)
    quotation_details: str = Field(..., min_length=1)
    comments: Optional[str] = None


class VehicleScheduleCreateRequest(_DateRange):
    vehicle_id: int
    driver_id: int
    start_date: date
    end_date: date

    def range_bounds(self) -> tuple[date, date]:
        return self.start_date, self.end_date


class _PartialUpdate(BaseModel):
    """
    Base for edit requests: only the fields sent are changed.

    ``status`` is not an accepted field; it moves only through authorisation
    and reconciliation.  Columns listed in ``not_null_fields`` may be omitted but
    not sent as ``null``.
    """

    not_null_fields: ClassVar[tuple[str, ...]] = ()

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def _check_not_null(self):
        for name in self.not_null_fields:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class MaintenanceOrderUpdateRequest(_PartialUpdate):
    not_null_fields: ClassVar[tuple[str, ...]] = (
        "vehicle_id",
        "start_date",
        "estimated_completion_date",
        "urgent",
    )

    vehicle_id: Optional[int] = None
    start_date: Optional[date] = None
    estimated_completion_date: Optional[date] = None
    urgent: Optional[bool] = None
    type: Optional[str] = Field(None, max_length=80)
    location: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    comments: Optional[str] = None


class VehicleScheduleUpdateRequest(_PartialUpdate):
    not_null_fields: ClassVar[tuple[str, ...]] = ("driver_id", "start_date", "end_date")

    driver_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


# ── Responses ─────────────────────────────────────────────────────────


class DriverResponse(BaseModel):
    id: int
    name: str
    email: str
    id_number: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class VehicleResponse(BaseModel):
    id: int
    name: str
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    license_plate: Optional[str] = None
    status: VehicleStatus
    assigned_driver_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MaintenanceOrderResponse(BaseModel):
    id: int
    order_number: Optional[str] = None
    vehicle_id: int
    status: MaintenanceOrderStatus
    start_date: date
    estimated_completion_date: date
    urgent: bool
    type: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    cost: Optional[float] = None
    quotation_details: Optional[str] = None
    comments: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class VehicleScheduleResponse(BaseModel):
    id: int
    vehicle_id: int
    driver_id: int
    status: ScheduleStatus
    start_date: date
    end_date: date
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UpdateResult(BaseModel):
    target: str
    id: int
    fields: dict[str, Any]
    reason: str
    ok: bool
    error: Optional[str] = None


class ReconciliationReportResponse(BaseModel):
    today: date
    skipped: bool
    planned: int
    succeeded: int
    failed: int
    duration_ms: int
    updates: list[UpdateResult] = []
    errors: list[str] = []


class HealthResponse(BaseModel):
    status: str = "ok"
    lock_backend: str = "ok"
    reconciliation_running: bool = False


class ErrorResponse(BaseModel):
    detail: str
