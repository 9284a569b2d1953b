"""
Update Applier
==============

Persists a reconciliation change set one target at a time.

* Updates are merged per ``(kind, id)`` first, so each record is written
  once with its final fields.
* A failed write is logged with the update's reason and reported as
  ``ok=False``; the remaining updates still run.
* Every attempted update is returned, successful or not, so the caller can
  audit a partially applied pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from .store import RecordStore
from src.domain.updates import Update, merge_updates

logger = logging.getLogger(__name__)


@dataclass
class AppliedUpdate:
    update: Update
    ok: bool
    error: Optional[str] = None


class UpdateApplier:
    def __init__(self, store: RecordStore):
        self.store = store

    async def apply(self, updates: Iterable[Update]) -> list[AppliedUpdate]:
        results: list[AppliedUpdate] = []
        for upd in merge_updates(updates):
            try:
                await self.store.update(upd.target, upd.id, upd.fields)
            except Exception as exc:
                logger.error(
                    "Failed to update %s %s (%s): %s",
                    upd.target.value,
                    upd.id,
                    upd.reason,
                    exc,
                )
                results.append(AppliedUpdate(upd, ok=False, error=str(exc)))
                continue
            logger.info("Updated %s %s: %s", upd.target.value, upd.id, upd.reason)
            results.append(AppliedUpdate(upd, ok=True))
        return results


async def apply_updates(
    store: RecordStore, updates: Iterable[Update]
) -> list[AppliedUpdate]:
    """Functional shorthand for ``UpdateApplier(store).apply(updates)``."""
    return await UpdateApplier(store).apply(updates)
