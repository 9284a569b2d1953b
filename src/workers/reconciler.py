"""
Background Reconciliation Worker
================================

Runs every ``RECONCILIATION_INTERVAL_SECONDS`` (default 300 s) and on demand
from ``POST /api/v1/admin/reconcile``.

Concurrency safety
------------------
* **Single-flight guard** -- at most one pass per process; a pass requested
  while another runs is skipped and reported as such.
* **Redis distributed lock** -- at most one pass across all API / worker
  processes.  This is what makes multi-scheduler deployments safe; if Redis
  is unreachable the pass is skipped rather than run unguarded.

Algorithm per pass
------------------
1. Load vehicles, drivers, maintenance orders and schedules once.
2. Plan the change set in memory (:func:`plan_reconciliation`), for the
   fleet's local ``today`` unless one is supplied.
3. Apply it one target at a time; failures are isolated and reported.

The first pass after startup also runs the assignment audit when
``RECONCILE_ON_STARTUP`` is set.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from redis.exceptions import RedisError

from src.config import settings
from src.domain.dates import local_today
from src.domain.reconciliation import plan_reconciliation
from src.domain.updates import Update
from src.infrastructure.applier import AppliedUpdate, UpdateApplier
from src.infrastructure.database import async_session_factory
from src.infrastructure.locks import DistributedLock, SingleFlight
from src.infrastructure.redis_client import get_redis
from src.infrastructure.store import SqlRecordStore

logger = logging.getLogger(__name__)

LOCK_KEY = "fleet_reconciliation"

_task: asyncio.Task | None = None
_stop_event: asyncio.Event | None = None
_guard = SingleFlight()


@dataclass
class ReconciliationReport:
    today: date
    planned: list[Update] = field(default_factory=list)
    applied: list[AppliedUpdate] = field(default_factory=list)
    skipped: bool = False
    errors: list[str] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def succeeded(self) -> int:
        return sum(1 for a in self.applied if a.ok)

    @property
    def failed(self) -> int:
        return sum(1 for a in self.applied if not a.ok)


# ── Public API ────────────────────────────────────────────────────────


async def start_reconciliation_loop() -> None:
    global _task, _stop_event
    _stop_event = asyncio.Event()
    _task = asyncio.create_task(_loop(audit_first=settings.reconcile_on_startup))
    logger.info(
        "Reconciliation worker started (interval=%ds)",
        settings.reconciliation_interval_seconds,
    )


async def stop_reconciliation_loop() -> None:
    if _stop_event:
        _stop_event.set()
    if _task:
        _task.cancel()
        try:
            await _task
        except asyncio.CancelledError:
            pass
    logger.info("Reconciliation worker stopped")


def is_running() -> bool:
    return _guard.busy


async def run_reconciliation_cycle(
    today: Optional[date] = None, *, audit: bool = False
) -> ReconciliationReport:
    """Execute one reconciliation pass and report what it did."""
    report = ReconciliationReport(today=today or local_today(settings.fleet_timezone))

    if not await _guard.try_acquire():
        logger.debug("Reconciliation pass already running – skipping")
        report.skipped = True
        return report
    try:
        return await _run_locked_pass(report, audit)
    finally:
        _guard.release()


# ── Internals ─────────────────────────────────────────────────────────


async def _loop(audit_first: bool) -> None:
    """Periodic loop: run a pass then sleep."""
    assert _stop_event is not None
    audit = audit_first
    while not _stop_event.is_set():
        try:
            await run_reconciliation_cycle(audit=audit)
        except Exception:
            logger.exception("Unhandled error in reconciliation pass")
        audit = False
        # Wait for the interval or until stop is signalled
        try:
            await asyncio.wait_for(
                _stop_event.wait(), timeout=settings.reconciliation_interval_seconds
            )
            break
        except asyncio.TimeoutError:
            pass  # next pass


async def _run_locked_pass(
    report: ReconciliationReport, audit: bool
) -> ReconciliationReport:
    started = time.monotonic()
    redis = await get_redis()
    lock = DistributedLock(
        redis, LOCK_KEY, ttl_seconds=settings.reconciliation_lock_ttl_seconds
    )

    try:
        acquired = await lock.acquire()
    except (RedisError, OSError) as exc:
        logger.error("Lock backend unreachable – skipping pass: %s", exc)
        report.skipped = True
        report.errors.append(f"Lock backend unreachable: {exc}")
        return report
    if not acquired:
        logger.debug("Lock held by another process – skipping pass")
        report.skipped = True
        return report

    try:
        store = SqlRecordStore(async_session_factory)
        snapshot = await store.load_snapshot()
        report.planned = plan_reconciliation(snapshot, report.today, audit=audit)
        report.applied = await UpdateApplier(store).apply(report.planned)
        report.errors.extend(
            f"{a.update.target.value} {a.update.id}: {a.error}"
            for a in report.applied
            if not a.ok
        )
        if report.applied:
            logger.info(
                "Reconciliation pass for %s: %d update(s) applied, %d failed",
                report.today,
                report.succeeded,
                report.failed,
            )
    except Exception as exc:
        logger.exception("Error in reconciliation pass")
        report.errors.append(str(exc))
    finally:
        try:
            await lock.release()
        except (RedisError, OSError) as exc:
            logger.warning("Could not release reconciliation lock: %s", exc)
            report.errors.append(f"Lock release failed: {exc}")
        report.duration_ms = int((time.monotonic() - started) * 1000)

    if report.duration_ms > settings.reconciliation_lock_ttl_seconds * 1000:
        logger.warning(
            "Reconciliation pass took %d ms, longer than the %ds lock TTL; "
            "another process may have run concurrently",
            report.duration_ms,
            settings.reconciliation_lock_ttl_seconds,
        )

    return report
