"""
Vehicle endpoints
=================

POST /api/v1/vehicles              -- register a vehicle (starts ``idle``)
GET  /api/v1/vehicles              -- list vehicles with derived status
GET  /api/v1/vehicles/{vehicle_id} -- one vehicle

``status`` and ``assigned_driver_id`` are read-only here; only the
reconciliation engine changes them.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db
from src.api.middleware import limiter
from src.api.schemas import VehicleCreateRequest, VehicleResponse
from src.domain.enums import VehicleStatus
from src.infrastructure.models import VehicleModel
from src.infrastructure.repositories import VehicleRepository

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.post(
    "",
    status_code=201,
    response_model=VehicleResponse,
    summary="Register a vehicle",
)
@limiter.limit("100/minute")
async def create_vehicle(
    request: Request,
    body: VehicleCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    vehicle = VehicleModel(**body.model_dump(), status=VehicleStatus.IDLE)
    return await VehicleRepository(db).create(vehicle)


@router.get("", response_model=list[VehicleResponse], summary="List vehicles")
@limiter.limit("100/minute")
async def list_vehicles(request: Request, db: AsyncSession = Depends(get_db)):
    return await VehicleRepository(db).list_all()


@router.get(
    "/{vehicle_id}",
    response_model=VehicleResponse,
    summary="Get a vehicle with its derived status and driver",
)
@limiter.limit("100/minute")
async def get_vehicle(
    request: Request,
    vehicle_id: int,
    db: AsyncSession = Depends(get_db),
):
    vehicle = await VehicleRepository(db).get_by_id(vehicle_id)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return vehicle
