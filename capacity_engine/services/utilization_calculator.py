"""Per-period utilization of one resource.

The calculation is a pure fold of allocation, availability, and
unavailability collections against a single ``TimePeriod``:

1. Allocations overlapping the period contribute their full percent (no
   proration for partial overlap); the total is not clamped at 100.
2. Gross hours are ``weekly_hours / 7`` per day of the period, with the
   weekly baseline taken from the last availability record.
3. Each overlapping unavailability removes ``weekly_hours / 7`` per day of
   its clipped overlap.
4. Utilization is ``allocated / net * 100`` and is 0 when no net hours remain,
   even if allocations exist.

Inputs are trusted. Records may be domain dataclasses or plain mappings with
``start_date``/``end_date``/``allocation_percent``/``project_id``/
``project_name`` keys; dates may be ``date``, ``datetime`` or ISO strings.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from capacity_engine.domain.constraints import DEFAULT_THRESHOLDS, UtilizationThresholds
from capacity_engine.domain.models import (
    AllocationDetail,
    TaskDetail,
    TimePeriod,
    UnavailabilityDetail,
    UtilizationPeriod,
    UtilizationStatus,
    read_field,
)
from capacity_engine.services.availability import DEFAULT_WEEKLY_HOURS, resolve_weekly_hours
from capacity_engine.services.overlap import filter_overlapping, overlap_days
from capacity_engine.utils.dates import coerce_timestamp, fractional_days


UNKNOWN_PROJECT_NAME = "Unknown Project"


def get_utilization_status(
    utilization_percent: float,
    thresholds: UtilizationThresholds = DEFAULT_THRESHOLDS,
) -> UtilizationStatus:
    if utilization_percent >= thresholds.overutilized:
        return UtilizationStatus.OVERUTILIZED
    if utilization_percent >= thresholds.optimal:
        return UtilizationStatus.OPTIMAL
    if utilization_percent >= thresholds.average:
        return UtilizationStatus.AVERAGE
    if utilization_percent >= thresholds.underutilized:
        return UtilizationStatus.UNDERUTILIZED
    return UtilizationStatus.AVAILABLE


def allocation_percent_of(allocation: Any) -> float:
    value = read_field(allocation, "allocation_percent")
    if value is None:
        value = read_field(allocation, "percent_allocation", 0.0)
    return float(value)


def _allocation_detail(
    allocation: Any,
    tasks_by_project: Optional[Mapping[str, list[TaskDetail]]],
) -> AllocationDetail:
    project_id = read_field(allocation, "project_id")
    return AllocationDetail(
        project_id=project_id,
        project_name=read_field(allocation, "project_name") or UNKNOWN_PROJECT_NAME,
        project_color=read_field(allocation, "project_color"),
        allocation_percent=allocation_percent_of(allocation),
        tasks=tasks_by_project.get(project_id) if tasks_by_project is not None else None,
    )


def _iso(value: Any) -> str:
    return coerce_timestamp(value).isoformat()


def _type_label(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def calculate_utilization_for_period(
    period: TimePeriod,
    allocations: Sequence[Any],
    availability: Sequence[Any],
    unavailability: Sequence[Any],
    tasks_by_project: Optional[Mapping[str, list[TaskDetail]]] = None,
    *,
    default_weekly_hours: float = DEFAULT_WEEKLY_HOURS,
    thresholds: UtilizationThresholds = DEFAULT_THRESHOLDS,
) -> UtilizationPeriod:
    period_allocations = filter_overlapping(allocations, period)
    total_allocation_percent = sum(
        (allocation_percent_of(allocation) for allocation in period_allocations),
        0.0,
    )
    allocation_details = [
        _allocation_detail(allocation, tasks_by_project) for allocation in period_allocations
    ]

    period_days = fractional_days(period.start, period.end)
    weekly_hours = resolve_weekly_hours(availability, default_weekly_hours)
    daily_hours = weekly_hours / 7
    gross_hours_available = daily_hours * period_days

    unavailable_hours = 0.0
    unavailability_details: list[UnavailabilityDetail] = []
    for record in filter_overlapping(unavailability, period):
        start = read_field(record, "start_date")
        end = read_field(record, "end_date")
        hours_lost = daily_hours * overlap_days(start, end, period)
        unavailable_hours += hours_lost
        record_id = read_field(record, "id")
        unavailability_details.append(
            UnavailabilityDetail(
                unavailability_id="" if record_id is None else str(record_id),
                unavailability_type=_type_label(read_field(record, "unavailability_type")),
                start_date=_iso(start),
                end_date=_iso(end),
                hours=hours_lost,
            )
        )

    net_available_hours = max(0.0, gross_hours_available - unavailable_hours)
    allocated_hours = net_available_hours * total_allocation_percent / 100
    utilization_percent = (
        allocated_hours / net_available_hours * 100 if net_available_hours > 0 else 0.0
    )

    return UtilizationPeriod(
        period_start=period.start.isoformat(),
        period_end=period.end.isoformat(),
        total_allocation_percent=total_allocation_percent,
        net_available_hours=net_available_hours,
        allocated_hours=allocated_hours,
        unavailable_hours=unavailable_hours,
        utilization_percent=utilization_percent,
        status=get_utilization_status(utilization_percent, thresholds),
        allocations=allocation_details,
        unavailabilities=unavailability_details or None,
    )
