"""
Maintenance order endpoints
===========================

POST  /api/v1/maintenance-orders              -- book a vehicle into the workshop
GET   /api/v1/maintenance-orders              -- filter by vehicle / status
GET   /api/v1/maintenance-orders/{id}         -- one order
PATCH /api/v1/maintenance-orders/{id}/authorize -- approve a pending order
PATCH /api/v1/maintenance-orders/{id}           -- edit dates, vehicle or details
DELETE /api/v1/maintenance-orders/{id}          -- drop an order that has not started

Creation, editing and authorisation lock the vehicle row
(``SELECT ... FOR UPDATE``) before the overlap check, so two requests racing
for the same dates cannot both pass it.  Overlap is checked against the vehicle's ``active`` and
``scheduled`` orders only.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db
from src.api.middleware import limiter
from src.api.schemas import (
    ErrorResponse,
    MaintenanceOrderAuthorizeRequest,
    MaintenanceOrderCreateRequest,
    MaintenanceOrderResponse,
    MaintenanceOrderUpdateRequest,
)
from src.domain.entities import AuthorizationError, InvalidStateTransition
from src.domain.enums import BLOCKING_STATUSES, MaintenanceOrderStatus, status_value
from src.domain.overlap import ensure_no_overlap
from src.infrastructure.models import MaintenanceOrderModel
from src.infrastructure.repositories import (
    MaintenanceOrderRepository,
    VehicleRepository,
    to_maintenance_order,
)

router = APIRouter(prefix="/maintenance-orders", tags=["maintenance-orders"])

DEFAULT_LIST_STATUSES = (
    MaintenanceOrderStatus.ACTIVE,
    MaintenanceOrderStatus.SCHEDULED,
    MaintenanceOrderStatus.PENDING_AUTHORIZATION,
)


async def _check_vehicle_calendar(
    db: AsyncSession,
    vehicle_id: int,
    start_date,
    end_date,
    exclude_id: Optional[int] = None,
) -> None:
    if not await VehicleRepository(db).get_for_update(vehicle_id):
        raise HTTPException(status_code=404, detail="Vehicle not found")
    existing = await MaintenanceOrderRepository(db).find(
        vehicle_id=vehicle_id, statuses=BLOCKING_STATUSES
    )
    ensure_no_overlap(
        start_date,
        end_date,
        [to_maintenance_order(m) for m in existing],
        exclude_id=exclude_id,
    )


@router.post(
    "",
    status_code=201,
    response_model=MaintenanceOrderResponse,
    summary="Create a maintenance order",
    responses={409: {"model": ErrorResponse, "description": "Schedule conflict"}},
)
@limiter.limit("100/minute")
async def create_maintenance_order(
    request: Request,
    body: MaintenanceOrderCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    await _check_vehicle_calendar(
        db, body.vehicle_id, body.start_date, body.estimated_completion_date
    )
    status = (
        MaintenanceOrderStatus.PENDING_AUTHORIZATION
        if body.requires_authorization
        else MaintenanceOrderStatus.SCHEDULED
    )
    order = MaintenanceOrderModel(
        **body.model_dump(exclude={"requires_authorization"}), status=status
    )
    return await MaintenanceOrderRepository(db).create(order)


@router.get(
    "",
    response_model=list[MaintenanceOrderResponse],
    summary="List maintenance orders",
    description=(
        "Defaults to orders that are active, scheduled or awaiting "
        "authorisation. Repeat ``status`` to filter on several values."
    ),
)
@limiter.limit("100/minute")
async def list_maintenance_orders(
    request: Request,
    vehicle_id: Optional[int] = None,
    status: Optional[list[MaintenanceOrderStatus]] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    statuses = status or DEFAULT_LIST_STATUSES
    return await MaintenanceOrderRepository(db).find(
        vehicle_id=vehicle_id, statuses=[s.value for s in statuses]
    )


@router.get(
    "/{order_id}",
    response_model=MaintenanceOrderResponse,
    summary="Get a maintenance order",
)
@limiter.limit("100/minute")
async def get_maintenance_order(
    request: Request,
    order_id: int,
    db: AsyncSession = Depends(get_db),
):
    order = await MaintenanceOrderRepository(db).get_by_id(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Maintenance order not found")
    return order


@router.patch(
    "/{order_id}/authorize",
    response_model=MaintenanceOrderResponse,
    summary="Authorise a pending maintenance order",
    description=(
        "Records cost and quotation and moves a PENDING_AUTHORIZATION order "
        "to SCHEDULED, after which reconciliation picks it up."
    ),
    responses={
        409: {"model": ErrorResponse, "description": "Not pending, or conflict"},
        422: {"model": ErrorResponse, "description": "Missing cost or quotation"},
    },
)
@limiter.limit("100/minute")
async def authorize_maintenance_order(
    request: Request,
    order_id: int,
    body: MaintenanceOrderAuthorizeRequest,
    db: AsyncSession = Depends(get_db),
):
    repo = MaintenanceOrderRepository(db)
    order = await repo.get_by_id(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Maintenance order not found")

    entity = to_maintenance_order(order)
    try:
        entity.authorize(body.cost, body.quotation_details, body.comments)
    except InvalidStateTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except AuthorizationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    # Joining the calendar: dates may have been taken while it was pending
    await _check_vehicle_calendar(
        db,
        order.vehicle_id,
        entity.start_date,
        entity.estimated_completion_date,
        exclude_id=order.id,
    )

    order.status = entity.status
    order.cost = entity.cost
    order.quotation_details = entity.quotation_details
    order.comments = entity.comments
    await db.flush()
    await db.refresh(order)
    return order


@router.patch(
    "/{order_id}",
    response_model=MaintenanceOrderResponse,
    summary="Edit a maintenance order",
    description=(
        "Changes dates, vehicle or descriptive fields. Status cannot be "
        "changed here; new dates are checked against the vehicle's other "
        "orders."
    ),
    responses={
        409: {"model": ErrorResponse, "description": "Not editable, or conflict"},
    },
)
@limiter.limit("100/minute")
async def update_maintenance_order(
    request: Request,
    order_id: int,
    body: MaintenanceOrderUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    repo = MaintenanceOrderRepository(db)
    order = await repo.get_by_id(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Maintenance order not found")
    if order.status == MaintenanceOrderStatus.COMPLETED:
        raise HTTPException(status_code=409, detail="Completed orders cannot be edited")

    changes = body.changes()
    vehicle_id = changes.get("vehicle_id", order.vehicle_id)
    if vehicle_id != order.vehicle_id and order.status == MaintenanceOrderStatus.ACTIVE:
        raise HTTPException(
            status_code=409, detail="An active order cannot move to another vehicle"
        )

    await _check_vehicle_calendar(
        db,
        vehicle_id,
        changes.get("start_date", order.start_date),
        changes.get("estimated_completion_date", order.estimated_completion_date),
        exclude_id=order.id,
    )

    for name, value in changes.items():
        setattr(order, name, value)
    await db.flush()
    await db.refresh(order)
    return order


@router.delete(
    "/{order_id}",
    status_code=204,
    summary="Delete a maintenance order that has not started",
    responses={409: {"model": ErrorResponse, "description": "Already started"}},
)
@limiter.limit("100/minute")
async def delete_maintenance_order(
    request: Request,
    order_id: int,
    db: AsyncSession = Depends(get_db),
):
    repo = MaintenanceOrderRepository(db)
    order = await repo.get_by_id(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Maintenance order not found")
    status = status_value(order.status)
    if status in (MaintenanceOrderStatus.ACTIVE, MaintenanceOrderStatus.COMPLETED):
        raise HTTPException(
            status_code=409, detail=f"Cannot delete a maintenance order that is {status}"
        )
    await repo.delete(order)
