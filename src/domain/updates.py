"""
Change set produced by a reconciliation pass.

An :class:`Update` is a partial field write against one record, tagged with
a human-readable reason.  Reconcilers only *produce* updates; persisting them
is the applier's job, so computing a pass stays a pure function of the
snapshot and ``today``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Sequence

from .enums import TargetKind


@dataclass
class Update:
    target: TargetKind
    id: int
    fields: dict[str, Any] = field(default_factory=dict)
    reason: str = ""

    @property
    def key(self) -> tuple[TargetKind, int]:
        return (self.target, self.id)


def merge_updates(updates: Iterable[Update]) -> list[Update]:
    """
    Collapse updates targeting the same ``(kind, id)`` into one.

    Later updates override earlier ones field by field (last write wins in
    evaluation order); reasons are concatenated.  Targets keep the position
    of their first update.
    """
    merged: dict[tuple[TargetKind, int], Update] = {}
    for upd in updates:
        existing = merged.get(upd.key)
        if existing is None:
            merged[upd.key] = Update(upd.target, upd.id, dict(upd.fields), upd.reason)
            continue
        existing.fields.update(upd.fields)
        if upd.reason:
            existing.reason = (
                f"{existing.reason}; {upd.reason}" if existing.reason else upd.reason
            )
    return list(merged.values())


def project(records: Sequence, updates: Iterable[Update], target: TargetKind) -> list:
    """
    Return copies of *records* with the matching updates applied in memory.

    Status changes go through the record's ``transition_to`` when it has one,
    so a projection can never move a lifecycle backwards.
    """
    pending: dict[int, dict[str, Any]] = {}
    for upd in updates:
        if upd.target is target:
            pending.setdefault(upd.id, {}).update(upd.fields)

    projected = []
    for record in records:
        changes = pending.get(record.id)
        if not changes:
            projected.append(record)
            continue
        copy = replace(record)
        for name, value in changes.items():
            if name == "status" and hasattr(copy, "transition_to") and copy.status != value:
                copy.transition_to(value)
            else:
                setattr(copy, name, value)
        projected.append(copy)
    return projected
