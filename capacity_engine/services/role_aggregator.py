"""Collapse concurrent multi-role allocations into one record per interval."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from capacity_engine.domain.models import AllocationPeriod


def aggregate_multi_role_allocations(
    allocations: Iterable[AllocationPeriod],
) -> list[AllocationPeriod]:
    """Sum allocations sharing resource, project, start, and end dates.

    Groups are emitted in first-seen order. Single-member groups pass through
    untouched; larger groups take the first member's other fields, the
    summed percent (2 decimals) and hours, and a ``", "``-joined role list.
    """

    groups: dict[tuple[str, str, str, str], list[AllocationPeriod]] = {}
    for allocation in allocations:
        key = (
            allocation.resource_id,
            allocation.project_id,
            allocation.start_date,
            allocation.end_date,
        )
        groups.setdefault(key, []).append(allocation)

    aggregated: list[AllocationPeriod] = []
    for group in groups.values():
        if len(group) == 1:
            aggregated.append(group[0])
            continue

        total_percent = sum(allocation.percent_allocation for allocation in group)
        total_hours = sum(allocation.hours_per_week or 0.0 for allocation in group)
        roles = [allocation.role for allocation in group if allocation.role]
        aggregated.append(
            replace(
                group[0],
                percent_allocation=round(total_percent, 2),
                hours_per_week=total_hours if total_hours > 0 else None,
                role=", ".join(roles) if roles else None,
                notes=f"Aggregated from {len(group)} roles",
            )
        )

    return aggregated
