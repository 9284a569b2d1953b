"""
Overlap Validator
=================

Answers whether two inclusive date ranges conflict.  Used when a vehicle
schedule or maintenance order is created (or authorised) to reject a record
whose range intersects an existing ``active`` / ``scheduled`` record of the
same kind for the same vehicle.

Ranges are normalised to day granularity first::

    [start 00:00:00, end 23:59:59.999999]

and two ranges overlap iff ``start1 <= end2 and end1 >= start2``.  Adjacent
ranges (one ends on the 10th, the next starts on the 11th) do not overlap.

The reconciliation pass does not call this module; it relies on creation
time validation having kept same-kind records for a vehicle disjoint.

Complexity: O(n) in the number of existing records for the vehicle.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from .dates import day_end, day_start
from .enums import BLOCKING_STATUSES, status_value

logger = logging.getLogger(__name__)


class InvalidDateRange(ValueError):
    """Raised when a proposed range is unparsable or ends before it starts."""


class ScheduleConflictError(Exception):
    """Raised when a proposed range overlaps an existing record."""

    def __init__(self, conflicts: Sequence):
        self.conflicts = list(conflicts)
        ids = ", ".join(str(c.id) for c in self.conflicts)
        super().__init__(f"Requested dates overlap existing record(s): {ids}")


def _normalise(start, end):
    return day_start(start), day_end(end)


def ranges_overlap(start_a, end_a, start_b, end_b) -> bool:
    """True iff the closed day ranges ``[start_a, end_a]`` and ``[start_b, end_b]`` intersect."""
    s1, e1 = _normalise(start_a, end_a)
    s2, e2 = _normalise(start_b, end_b)
    if None in (s1, e1, s2, e2):
        raise InvalidDateRange("Cannot compare ranges with unparsable dates")
    return s1 <= e2 and e1 >= s2


def find_overlaps(
    new_start,
    new_end,
    existing_items: Iterable,
    status_filter: Sequence[str] = BLOCKING_STATUSES,
    exclude_id: Optional[int] = None,
) -> list:
    """Return the existing items, restricted to *status_filter*, that overlap the new range."""
    s_new, e_new = _normalise(new_start, new_end)
    if s_new is None or e_new is None:
        raise InvalidDateRange(f"Unparsable range: {new_start!r} - {new_end!r}")
    if s_new > e_new:
        raise InvalidDateRange(f"Range ends before it starts: {new_start} - {new_end}")

    allowed = {status_value(s) for s in status_filter}
    conflicts = []
    for item in existing_items:
        if exclude_id is not None and item.id == exclude_id:
            continue
        if status_value(item.status) not in allowed:
            continue
        s_old, e_old = _normalise(item.start_date, item.end_date)
        if s_old is None or e_old is None:
            logger.warning(
                "Skipping record %s in overlap check: unparsable dates", item.id
            )
            continue
        if s_new <= e_old and e_new >= s_old:
            conflicts.append(item)
    return conflicts


def has_overlap(
    new_start,
    new_end,
    existing_items: Iterable,
    status_filter: Sequence[str] = BLOCKING_STATUSES,
) -> bool:
    return bool(find_overlaps(new_start, new_end, existing_items, status_filter))


def validate_no_overlap(
    new_range: tuple,
    existing_ranges: Iterable,
    status_filter: Sequence[str] = BLOCKING_STATUSES,
) -> bool:
    """True when ``new_range = (start, end)`` may be persisted."""
    new_start, new_end = new_range
    return not has_overlap(new_start, new_end, existing_ranges, status_filter)


def ensure_no_overlap(
    new_start,
    new_end,
    existing_items: Iterable,
    status_filter: Sequence[str] = BLOCKING_STATUSES,
    exclude_id: Optional[int] = None,
) -> None:
    """Raise :class:`ScheduleConflictError` if the new range conflicts."""
    conflicts = find_overlaps(
        new_start, new_end, existing_items, status_filter, exclude_id=exclude_id
    )
    if conflicts:
        raise ScheduleConflictError(conflicts)
