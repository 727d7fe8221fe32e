"""Run-length encoding of allocation periods over time."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from capacity_engine.domain.models import AllocationPeriod
from capacity_engine.utils.dates import add_days
from capacity_engine.utils.logger import get_logger


logger = get_logger(__name__)


def are_consecutive_periods(end_date: str, start_date: str) -> bool:
    """True when ``start_date`` is the day after ``end_date``."""
    return add_days(end_date, 1) == start_date


def _can_merge(current: AllocationPeriod, candidate: AllocationPeriod) -> bool:
    return (
        current.resource_id == candidate.resource_id
        and current.project_id == candidate.project_id
        and current.percent_allocation == candidate.percent_allocation
        and are_consecutive_periods(current.end_date, candidate.start_date)
    )


def merge_consecutive_periods(allocations: Iterable[AllocationPeriod]) -> list[AllocationPeriod]:
    """Fuse back-to-back periods that share resource, project, and percent.

    Input order does not matter; output is ordered by resource, project, and
    start date. A differing percent always breaks a run. Input records are
    never modified. Merging the output again returns it unchanged.
    """

    ordered = sorted(
        allocations,
        key=lambda allocation: (
            allocation.resource_id,
            allocation.project_id,
            allocation.start_date,
        ),
    )
    if not ordered:
        return []

    merged: list[AllocationPeriod] = []
    current = ordered[0]
    for allocation in ordered[1:]:
        if _can_merge(current, allocation):
            current = replace(current, end_date=allocation.end_date)
        else:
            merged.append(current)
            current = allocation
    merged.append(current)

    logger.debug("Merged allocation periods | input=%s | output=%s", len(ordered), len(merged))
    return merged


def reduction_percent(before: int, after: int) -> float:
    if before == 0:
        return 0.0
    return round((1 - after / before) * 100, 2)
