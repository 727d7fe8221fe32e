"""Domain models for allocation intervals and utilization reporting."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class Granularity(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class UtilizationStatus(str, Enum):
    OVERUTILIZED = "OVERUTILIZED"
    OPTIMAL = "OPTIMAL"
    AVERAGE = "AVERAGE"
    UNDERUTILIZED = "UNDERUTILIZED"
    AVAILABLE = "AVAILABLE"


class UnavailabilityType(str, Enum):
    VACATION = "vacation"
    SICK_LEAVE = "sick_leave"
    TRAINING = "training"
    PUBLIC_HOLIDAY = "public_holiday"
    OTHER = "other"


def read_field(record: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a mapping or an attribute-style record."""
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


@dataclass(frozen=True)
class AllocationPeriod:
    """A resource's claimed share of capacity on a project between two dates.

    ``start_date`` and ``end_date`` are inclusive ISO calendar dates.
    """

    resource_id: str
    project_id: str
    start_date: str
    end_date: str
    percent_allocation: float
    hours_per_week: Optional[float] = None
    role: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    is_active: bool = True
    id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AllocationPeriod":
        return cls(
            resource_id=str(payload["resource_id"]),
            project_id=str(payload["project_id"]),
            start_date=str(payload["start_date"]),
            end_date=str(payload["end_date"]),
            percent_allocation=float(payload["percent_allocation"]),
            hours_per_week=payload.get("hours_per_week"),
            role=payload.get("role"),
            notes=payload.get("notes"),
            created_by=payload.get("created_by"),
            is_active=bool(payload.get("is_active", True)),
            id=payload.get("id"),
        )


@dataclass(frozen=True)
class AvailabilityRecord:
    resource_id: str
    effective_from: Any
    effective_to: Any = None
    hours_per_day: float = 8.0
    days_per_week: float = 5.0
    total_hours_per_week: float = 40.0


@dataclass(frozen=True)
class UnavailabilityPeriod:
    id: str
    resource_id: str
    unavailability_type: UnavailabilityType
    start_date: Any
    end_date: Any
    description: Optional[str] = None


@dataclass(frozen=True)
class TimePeriod:
    """Half-open bucket ``[start, end)``; ``label`` is presentation-only."""

    start: datetime
    end: datetime
    label: str


@dataclass
class TaskDetail:
    task_id: str
    task_name: str
    status_name: str = "Unknown"
    status_color: str = "#808080"
    priority_name: str = "None"
    priority_color: str = "#808080"
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    estimated_hours: Optional[float] = None
    logged_hours: Optional[float] = None
    parent_task_id: Optional[str] = None
    subtasks: Optional[list["TaskDetail"]] = None

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "task_id": self.task_id,
            "task_name": self.task_name,
            "status_name": self.status_name,
            "status_color": self.status_color,
            "priority_name": self.priority_name,
            "priority_color": self.priority_color,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "estimated_hours": self.estimated_hours,
            "logged_hours": self.logged_hours,
            "parent_task_id": self.parent_task_id,
        }
        if self.subtasks:
            payload["subtasks"] = [subtask.to_dict() for subtask in self.subtasks]
        return payload


@dataclass(frozen=True)
class AllocationDetail:
    project_id: str
    project_name: str
    project_color: Optional[str]
    allocation_percent: float
    tasks: Optional[list[TaskDetail]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_id": self.project_id,
            "project_name": self.project_name,
            "project_color": self.project_color,
            "allocation_percent": self.allocation_percent,
            "tasks": [task.to_dict() for task in self.tasks] if self.tasks is not None else None,
        }


@dataclass(frozen=True)
class UnavailabilityDetail:
    unavailability_id: str
    unavailability_type: str
    start_date: str
    end_date: str
    hours: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UtilizationPeriod:
    period_start: str
    period_end: str
    total_allocation_percent: float
    net_available_hours: float
    allocated_hours: float
    unavailable_hours: float
    utilization_percent: float
    status: UtilizationStatus
    allocations: list[AllocationDetail]
    unavailabilities: Optional[list[UnavailabilityDetail]] = None

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "period_start": self.period_start,
            "period_end": self.period_end,
            "total_allocation_percent": self.total_allocation_percent,
            "net_available_hours": self.net_available_hours,
            "allocated_hours": self.allocated_hours,
            "unavailable_hours": self.unavailable_hours,
            "utilization_percent": self.utilization_percent,
            "status": self.status.value,
            "allocations": [detail.to_dict() for detail in self.allocations],
            "unavailabilities": (
                [detail.to_dict() for detail in self.unavailabilities]
                if self.unavailabilities is not None
                else None
            ),
        }


@dataclass(frozen=True)
class ResourceSummary:
    avg_utilization_percent: float
    total_hours_allocated: float
    active_projects_count: int


@dataclass(frozen=True)
class ResourceInput:
    """Already-materialized collections for one resource."""

    resource_id: str
    name: str
    resource_type: str = "personnel"
    email: Optional[str] = None
    department_id: Optional[str] = None
    department_name: Optional[str] = None
    allocations: list[Any] = field(default_factory=list)
    availability: list[Any] = field(default_factory=list)
    unavailability: list[Any] = field(default_factory=list)
    tasks_by_project: Optional[dict[str, list[TaskDetail]]] = None


@dataclass(frozen=True)
class ResourceUtilization:
    resource_id: str
    name: str
    resource_type: str
    email: Optional[str]
    department_id: Optional[str]
    department_name: Optional[str]
    utilization_periods: list[UtilizationPeriod]
    summary: ResourceSummary

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "id": self.resource_id,
            "name": self.name,
            "resource_type": self.resource_type,
            "email": self.email,
            "department_id": self.department_id,
            "department_name": self.department_name,
            "utilization_periods": [
                period.to_api_dict() for period in self.utilization_periods
            ],
            "summary": asdict(self.summary),
        }


@dataclass(frozen=True)
class HeatmapResult:
    resources: list[ResourceUtilization]
    period_labels: list[str]

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "resources": [resource.to_api_dict() for resource in self.resources],
            "period_labels": list(self.period_labels),
        }
