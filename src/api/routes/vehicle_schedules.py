"""
Vehicle schedule endpoints
==========================

POST /api/v1/vehicle-schedules               -- assign a driver to a vehicle for a date range
GET  /api/v1/vehicle-schedules               -- filter by vehicle / status
GET  /api/v1/vehicle-schedules/{schedule_id} -- one schedule
PATCH  /api/v1/vehicle-schedules/{schedule_id} -- change dates or driver
DELETE /api/v1/vehicle-schedules/{schedule_id} -- drop a schedule that has not started

A new or edited schedule is rejected with 409 when its range overlaps an
``active`` or ``scheduled`` schedule of the same vehicle (inclusive day
ranges).
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db
from src.api.middleware import limiter
from src.api.schemas import (
    ErrorResponse,
    VehicleScheduleCreateRequest,
    VehicleScheduleResponse,
    VehicleScheduleUpdateRequest,
)
from src.domain.enums import BLOCKING_STATUSES, ScheduleStatus, status_value
from src.domain.overlap import ensure_no_overlap
from src.infrastructure.models import VehicleScheduleModel
from src.infrastructure.repositories import (
    DriverRepository,
    VehicleRepository,
    VehicleScheduleRepository,
    to_vehicle_schedule,
)

router = APIRouter(prefix="/vehicle-schedules", tags=["vehicle-schedules"])

DEFAULT_LIST_STATUSES = (ScheduleStatus.ACTIVE, ScheduleStatus.SCHEDULED)


@router.post(
    "",
    status_code=201,
    response_model=VehicleScheduleResponse,
    summary="Create a vehicle schedule",
    responses={409: {"model": ErrorResponse, "description": "Schedule conflict"}},
)
@limiter.limit("100/minute")
async def create_vehicle_schedule(
    request: Request,
    body: VehicleScheduleCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    if not await VehicleRepository(db).get_for_update(body.vehicle_id):
        raise HTTPException(status_code=404, detail="Vehicle not found")
    if not await DriverRepository(db).get_by_id(body.driver_id):
        raise HTTPException(status_code=404, detail="Driver not found")

    repo = VehicleScheduleRepository(db)
    existing = await repo.find(vehicle_id=body.vehicle_id, statuses=BLOCKING_STATUSES)
    ensure_no_overlap(
        body.start_date, body.end_date, [to_vehicle_schedule(s) for s in existing]
    )

    schedule = VehicleScheduleModel(
        **body.model_dump(), status=ScheduleStatus.SCHEDULED
    )
    return await repo.create(schedule)


@router.get(
    "",
    response_model=list[VehicleScheduleResponse],
    summary="List vehicle schedules",
)
@limiter.limit("100/minute")
async def list_vehicle_schedules(
    request: Request,
    vehicle_id: Optional[int] = None,
    status: Optional[list[ScheduleStatus]] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    statuses = status or DEFAULT_LIST_STATUSES
    return await VehicleScheduleRepository(db).find(
        vehicle_id=vehicle_id, statuses=[s.value for s in statuses]
    )


@router.get(
    "/{schedule_id}",
    response_model=VehicleScheduleResponse,
    summary="Get a vehicle schedule",
)
@limiter.limit("100/minute")
async def get_vehicle_schedule(
    request: Request,
    schedule_id: int,
    db: AsyncSession = Depends(get_db),
):
    schedule = await VehicleScheduleRepository(db).get_by_id(schedule_id)
    if not schedule:
        raise HTTPException(status_code=404, detail="Vehicle schedule not found")
    return schedule


@router.patch(
    "/{schedule_id}",
    response_model=VehicleScheduleResponse,
    summary="Edit a vehicle schedule",
    description=(
        "Changes dates or, before the schedule starts, the driver. Status "
        "cannot be changed here."
    ),
    responses={
        409: {"model": ErrorResponse, "description": "Not editable, or conflict"},
    },
)
@limiter.limit("100/minute")
async def update_vehicle_schedule(
    request: Request,
    schedule_id: int,
    body: VehicleScheduleUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    repo = VehicleScheduleRepository(db)
    schedule = await repo.get_by_id(schedule_id)
    if not schedule:
        raise HTTPException(status_code=404, detail="Vehicle schedule not found")
    status = status_value(schedule.status)
    if status == ScheduleStatus.COMPLETED:
        raise HTTPException(
            status_code=409, detail="Completed schedules cannot be edited"
        )

    changes = body.changes()
    driver_id = changes.get("driver_id", schedule.driver_id)
    if driver_id != schedule.driver_id:
        # The vehicle already carries the driver of an active schedule
        if status == ScheduleStatus.ACTIVE:
            raise HTTPException(
                status_code=409,
                detail="The driver of an active schedule cannot be changed",
            )
        if not await DriverRepository(db).get_by_id(driver_id):
            raise HTTPException(status_code=404, detail="Driver not found")

    await VehicleRepository(db).get_for_update(schedule.vehicle_id)
    existing = await repo.find(
        vehicle_id=schedule.vehicle_id, statuses=BLOCKING_STATUSES
    )
    ensure_no_overlap(
        changes.get("start_date", schedule.start_date),
        changes.get("end_date", schedule.end_date),
        [to_vehicle_schedule(s) for s in existing],
        exclude_id=schedule.id,
    )

    for name, value in changes.items():
        setattr(schedule, name, value)
    await db.flush()
    await db.refresh(schedule)
    return schedule


@router.delete(
    "/{schedule_id}",
    status_code=204,
    summary="Delete a schedule that has not started",
    responses={409: {"model": ErrorResponse, "description": "Already started"}},
)
@limiter.limit("100/minute")
async def delete_vehicle_schedule(
    request: Request,
    schedule_id: int,
    db: AsyncSession = Depends(get_db),
):
    repo = VehicleScheduleRepository(db)
    schedule = await repo.get_by_id(schedule_id)
    if not schedule:
        raise HTTPException(status_code=404, detail="Vehicle schedule not found")
    status = status_value(schedule.status)
    if status != ScheduleStatus.SCHEDULED:
        raise HTTPException(
            status_code=409, detail=f"Cannot delete a schedule that is {status}"
        )
    await repo.delete(schedule)
