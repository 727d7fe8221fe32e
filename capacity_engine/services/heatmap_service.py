"""Heatmap assembly: bucket a range and compute utilization per resource."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Optional, Sequence

import pandas as pd

from capacity_engine.domain.constraints import (
    UtilizationThresholds,
    validate_utilization_thresholds,
)
from capacity_engine.domain.interchange import HeatmapQuery
from capacity_engine.domain.models import (
    HeatmapResult,
    ResourceInput,
    ResourceSummary,
    ResourceUtilization,
    TimePeriod,
    UtilizationPeriod,
    read_field,
)
from capacity_engine.services.time_bucketer import generate_time_periods
from capacity_engine.services.utilization_calculator import calculate_utilization_for_period
from capacity_engine.utils.config import Settings, get_settings
from capacity_engine.utils.logger import get_logger


logger = get_logger(__name__)


class HeatmapError(Exception):
    """Base exception for heatmap workflow failures."""


class HeatmapValidationError(HeatmapError):
    """Raised when heatmap configuration is invalid."""


def summarize_utilization(periods: Sequence[UtilizationPeriod]) -> ResourceSummary:
    if not periods:
        return ResourceSummary(
            avg_utilization_percent=0.0,
            total_hours_allocated=0.0,
            active_projects_count=0,
        )

    frame = pd.DataFrame(
        [
            {
                "utilization_percent": period.utilization_percent,
                "allocated_hours": period.allocated_hours,
            }
            for period in periods
        ]
    )
    project_ids = {
        detail.project_id for period in periods for detail in period.allocations
    }
    return ResourceSummary(
        avg_utilization_percent=float(frame["utilization_percent"].mean()),
        total_hours_allocated=float(frame["allocated_hours"].sum()),
        active_projects_count=len(project_ids),
    )


class HeatmapService:
    """Computes resource x period utilization grids from in-memory inputs.

    Each resource is computed independently from its own collections, so the
    per-resource step can fan out over a thread pool without locking.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._thresholds = UtilizationThresholds.from_settings(self._settings)
        try:
            validate_utilization_thresholds(self._thresholds)
        except ValueError as exc:
            raise HeatmapValidationError(str(exc)) from exc

    @property
    def thresholds(self) -> UtilizationThresholds:
        return self._thresholds

    def _scope_resource(self, resource: ResourceInput, query: HeatmapQuery) -> ResourceInput:
        allocations = resource.allocations
        if query.project_id is not None:
            allocations = [
                allocation
                for allocation in allocations
                if read_field(allocation, "project_id") == query.project_id
            ]
        return replace(
            resource,
            allocations=list(allocations),
            unavailability=list(resource.unavailability) if query.include_unavailability else [],
            tasks_by_project=resource.tasks_by_project if query.include_tasks else None,
        )

    def calculate_resource(
        self,
        resource: ResourceInput,
        periods: Sequence[TimePeriod],
    ) -> ResourceUtilization:
        utilization_periods = [
            calculate_utilization_for_period(
                period,
                resource.allocations,
                resource.availability,
                resource.unavailability,
                resource.tasks_by_project,
                default_weekly_hours=self._settings.default_weekly_hours,
                thresholds=self._thresholds,
            )
            for period in periods
        ]
        return ResourceUtilization(
            resource_id=resource.resource_id,
            name=resource.name,
            resource_type=resource.resource_type,
            email=resource.email,
            department_id=resource.department_id,
            department_name=resource.department_name,
            utilization_periods=utilization_periods,
            summary=summarize_utilization(utilization_periods),
        )

    def build_heatmap(
        self,
        query: HeatmapQuery,
        resources: Sequence[ResourceInput],
    ) -> HeatmapResult:
        periods = generate_time_periods(query.start_date, query.end_date, query.granularity)
        scoped = [self._scope_resource(resource, query) for resource in resources]

        max_workers = self._settings.heatmap_max_workers
        if max_workers > 1 and len(scoped) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                rows = list(
                    executor.map(lambda resource: self.calculate_resource(resource, periods), scoped)
                )
        else:
            rows = [self.calculate_resource(resource, periods) for resource in scoped]

        logger.info(
            "Heatmap computed | resources=%s | periods=%s | granularity=%s | workers=%s",
            len(rows),
            len(periods),
            query.granularity.value,
            max_workers,
        )
        return HeatmapResult(
            resources=rows,
            period_labels=[period.label for period in periods],
        )
