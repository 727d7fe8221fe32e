"""Hours/percent conversion and allocation hour totals."""

from __future__ import annotations

from typing import Iterable, Sequence

from capacity_engine.domain.models import AllocationPeriod
from capacity_engine.utils.dates import days_between


STANDARD_WEEK_HOURS = 40.0


def hours_to_percent(hours_per_week: float, standard_week_hours: float = STANDARD_WEEK_HOURS) -> float:
    """20h of a 40h week is 50.0; values above 100 are kept (multi-role)."""
    return round(hours_per_week / standard_week_hours * 100, 2)


def percent_to_hours(percent_allocation: float, standard_week_hours: float = STANDARD_WEEK_HOURS) -> float:
    return percent_allocation / 100 * standard_week_hours


def calculate_total_hours(
    allocations: Iterable[AllocationPeriod],
    standard_week_hours: float = STANDARD_WEEK_HOURS,
) -> float:
    """Sum of weekly hours times inclusive weeks, rounded to 2 decimals."""

    total_hours = 0.0
    for allocation in allocations:
        weeks = (days_between(allocation.start_date, allocation.end_date) + 1) / 7
        total_hours += percent_to_hours(allocation.percent_allocation, standard_week_hours) * weeks
    return round(total_hours, 2)


def divide_hours_equally(
    total_hours: float,
    resource_ids: Sequence[str],
    standard_week_hours: float = STANDARD_WEEK_HOURS,
) -> dict[str, float]:
    if not resource_ids:
        return {}
    percent_each = hours_to_percent(total_hours / len(resource_ids), standard_week_hours)
    return {resource_id: percent_each for resource_id in resource_ids}
