"""
Driver endpoints
================

POST /api/v1/drivers -- register a driver (email must be unique)
GET  /api/v1/drivers -- list drivers
DELETE /api/v1/drivers/{id} -- remove a driver with no vehicle or schedule history
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db
from src.api.middleware import limiter
from src.api.schemas import DriverCreateRequest, DriverResponse, ErrorResponse
from src.infrastructure.models import DriverModel
from src.infrastructure.repositories import (
    DriverRepository,
    VehicleRepository,
    VehicleScheduleRepository,
)

router = APIRouter(prefix="/drivers", tags=["drivers"])


@router.post(
    "",
    status_code=201,
    response_model=DriverResponse,
    summary="Register a driver",
)
@limiter.limit("100/minute")
async def create_driver(
    request: Request,
    body: DriverCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    repo = DriverRepository(db)
    if await repo.get_by_email(body.email):
        raise HTTPException(
            status_code=409, detail=f"Driver with email {body.email} already exists"
        )
    return await repo.create(DriverModel(**body.model_dump()))


@router.get("", response_model=list[DriverResponse], summary="List drivers")
@limiter.limit("100/minute")
async def list_drivers(request: Request, db: AsyncSession = Depends(get_db)):
    return await DriverRepository(db).list_all()


@router.delete(
    "/{driver_id}",
    status_code=204,
    summary="Remove a driver",
    responses={409: {"model": ErrorResponse, "description": "Driver still in use"}},
)
@limiter.limit("100/minute")
async def delete_driver(
    request: Request,
    driver_id: int,
    db: AsyncSession = Depends(get_db),
):
    repo = DriverRepository(db)
    driver = await repo.get_by_id(driver_id)
    if not driver:
        raise HTTPException(status_code=404, detail="Driver not found")
    if await VehicleRepository(db).list_assigned_to(driver_id):
        raise HTTPException(
            status_code=409, detail="Driver is assigned to a vehicle"
        )
    if await VehicleScheduleRepository(db).find(driver_id=driver_id):
        raise HTTPException(
            status_code=409, detail="Driver is referenced by vehicle schedules"
        )
    await repo.delete(driver)
