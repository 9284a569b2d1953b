"""
FastAPI application factory.

* Registers routes for vehicles, drivers, maintenance orders, schedules and admin.
* Starts / stops the background reconciliation worker via lifespan events.
* Maps overlap conflicts to 409 and invalid ranges to 422.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.middleware import limiter
from src.api.routes import (
    admin,
    drivers,
    maintenance_orders,
    vehicle_schedules,
    vehicles,
)
from src.config import settings
from src.domain.overlap import InvalidDateRange, ScheduleConflictError
from src.workers import reconciler as _reconciler

logging.basicConfig(level=settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the reconciliation worker on startup; stop on shutdown."""
    await _reconciler.start_reconciliation_loop()
    yield
    await _reconciler.stop_reconciliation_loop()


async def _schedule_conflict_handler(request: Request, exc: ScheduleConflictError):
    return JSONResponse(status_code=409, content={"detail": f"Schedule conflict: {exc}"})


async def _invalid_range_handler(request: Request, exc: InvalidDateRange):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Fleet Status Reconciliation API",
        description=(
            "Keeps vehicles, maintenance orders and driver schedules "
            "consistent with the calendar.  A periodic pass activates and "
            "completes orders and schedules as their dates arrive and derives "
            "each vehicle's status and assigned driver."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(ScheduleConflictError, _schedule_conflict_handler)
    app.add_exception_handler(InvalidDateRange, _invalid_range_handler)

    # Routers
    app.include_router(vehicles.router, prefix="/api/v1")
    app.include_router(drivers.router, prefix="/api/v1")
    app.include_router(maintenance_orders.router, prefix="/api/v1")
    app.include_router(vehicle_schedules.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
