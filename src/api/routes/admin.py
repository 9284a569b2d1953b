"""
Admin / observability endpoints
===============================

POST /api/v1/admin/reconcile -- run a reconciliation pass now and return its report
GET  /api/v1/admin/health    -- health check, including the lock backend
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Query, Request

from src.api.middleware import limiter
from src.api.schemas import (
    HealthResponse,
    ReconciliationReportResponse,
    UpdateResult,
)
from src.infrastructure.redis_client import lock_backend_available
from src.workers import reconciler

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post(
    "/reconcile",
    response_model=ReconciliationReportResponse,
    summary="Run a reconciliation pass on demand",
    description=(
        "Brings maintenance orders, schedules and vehicle status in line with "
        "``today`` (the fleet's local date unless given).  When a pass is "
        "already running here or on another instance, the request returns "
        "``skipped=true`` without doing anything."
    ),
)
@limiter.limit("10/minute")
async def reconcile(
    request: Request,
    today: Optional[date] = Query(None, description="Override the pass date"),
    audit: bool = Query(False, description="Also audit driver assignments"),
):
    report = await reconciler.run_reconciliation_cycle(today, audit=audit)
    return ReconciliationReportResponse(
        today=report.today,
        skipped=report.skipped,
        planned=len(report.planned),
        succeeded=report.succeeded,
        failed=report.failed,
        duration_ms=report.duration_ms,
        updates=[
            UpdateResult(
                target=a.update.target.value,
                id=a.update.id,
                fields=a.update.fields,
                reason=a.update.reason,
                ok=a.ok,
                error=a.error,
            )
            for a in report.applied
        ],
        errors=report.errors,
    )


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse(
        lock_backend="ok" if await lock_backend_available() else "unavailable",
        reconciliation_running=reconciler.is_running(),
    )
