"""Migration pipeline: weekly grid -> compressed, identified, validated periods.

Steps, in order:

1. Extract non-zero (person, week) cells from the parsed grid.
2. Reshape entries with the configured split strategy.
3. Build one weekly ``AllocationPeriod`` per entry.
4. Aggregate concurrent multi-role rows, then merge consecutive weeks.
5. Assign deterministic ids so repeated runs produce identical output.
6. Validate the result; the pipeline raises when it is invalid unless
   ``migration_fail_on_invalid`` is off.

Everything runs in memory over the full input; there is no streaming.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Collection, Iterable, Optional, Sequence

from capacity_engine.domain.interchange import MigrationEnvelope
from capacity_engine.domain.models import AllocationPeriod
from capacity_engine.services.conversion import calculate_total_hours
from capacity_engine.services.extraction import (
    WeeklyGridLayout,
    build_allocation_periods,
    extract_weekly_hours,
)
from capacity_engine.services.identity import (
    generate_allocation_id,
    generate_project_id,
    generate_resource_id,
)
from capacity_engine.services.period_merger import merge_consecutive_periods, reduction_percent
from capacity_engine.services.role_aggregator import aggregate_multi_role_allocations
from capacity_engine.services.split_strategy import AllocationSplitStrategy
from capacity_engine.services.validation import (
    ValidationResult,
    combine_validation_results,
    validate_date_fields,
    validate_foreign_keys,
    validate_numeric_fields,
    validate_required_fields,
    validate_sum,
    validate_unique,
    validate_uuid_fields,
    validation_failure,
    validation_success,
)
from capacity_engine.utils.config import Settings, get_settings
from capacity_engine.utils.logger import get_logger


logger = get_logger(__name__)

ALLOCATION_REQUIRED_FIELDS = ("id", "resource_id", "project_id", "start_date", "end_date")
ALLOCATION_UUID_FIELDS = ("id", "resource_id", "project_id")
ENTITY_REQUIRED_FIELDS = (
    "resource_id",
    "project_id",
    "start_date",
    "end_date",
    "percent_allocation",
)


class MigrationError(Exception):
    """Base exception for migration pipeline failures."""


class MigrationValidationError(MigrationError):
    """Raised when migration output fails data-quality validation."""

    def __init__(self, message: str, result: ValidationResult) -> None:
        super().__init__(message)
        self.result = result


@dataclass(frozen=True)
class MigratedResource:
    id: str
    email: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "email": self.email}


@dataclass(frozen=True)
class MigrationResult:
    project_id: str
    project_name: str
    resources: list[MigratedResource]
    allocations: list[AllocationPeriod]
    validation: ValidationResult
    raw_count: int
    total_hours: float
    source_file: Optional[str] = None

    @property
    def merged_count(self) -> int:
        return len(self.allocations)

    @property
    def reduction_percent(self) -> float:
        return reduction_percent(self.raw_count, self.merged_count)

    def to_envelope(self, generated_at: Optional[datetime] = None) -> MigrationEnvelope:
        timestamp = (generated_at or datetime.now(timezone.utc)).isoformat()
        return MigrationEnvelope(
            entities=[allocation.to_dict() for allocation in self.allocations],
            metadata={
                "source_file": self.source_file,
                "generated_at": timestamp,
                "project_id": self.project_id,
                "project_name": self.project_name,
                "raw_allocations": self.raw_count,
                "total_allocations": self.merged_count,
                "reduction_percent": self.reduction_percent,
                "total_hours": self.total_hours,
                "is_valid": self.validation.is_valid,
            },
        )

    def resources_envelope(self, generated_at: Optional[datetime] = None) -> MigrationEnvelope:
        timestamp = (generated_at or datetime.now(timezone.utc)).isoformat()
        return MigrationEnvelope(
            entities=[resource.to_dict() for resource in self.resources],
            metadata={
                "source_file": self.source_file,
                "generated_at": timestamp,
                "total_resources": len(self.resources),
            },
        )


def assign_allocation_ids(
    allocations: Iterable[AllocationPeriod],
    namespace: str,
) -> list[AllocationPeriod]:
    return [
        replace(
            allocation,
            id=generate_allocation_id(
                allocation.resource_id,
                allocation.project_id,
                allocation.start_date,
                allocation.end_date,
                namespace,
            ),
        )
        for allocation in allocations
    ]


def _validate_period_order(allocations: Sequence[AllocationPeriod]) -> ValidationResult:
    errors = [
        f"Record {index} (allocation): start_date {allocation.start_date} "
        f"is after end_date {allocation.end_date}"
        for index, allocation in enumerate(allocations)
        if allocation.start_date > allocation.end_date
    ]
    if errors:
        return validation_failure(errors)
    return validation_success()


def _over_allocation_warnings(allocations: Sequence[AllocationPeriod]) -> ValidationResult:
    warnings = [
        f"Record {index} (allocation): {allocation.percent_allocation}% exceeds 100% "
        f"for resource {allocation.resource_id} from {allocation.start_date}"
        for index, allocation in enumerate(allocations)
        if allocation.percent_allocation > 100
    ]
    return validation_success(warnings=warnings)


class MigrationService:
    """Runs the extract -> reshape -> compress -> identify -> validate pipeline."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        split_strategy: Optional[AllocationSplitStrategy] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._split_strategy = split_strategy or AllocationSplitStrategy()

    def compress(self, allocations: Iterable[AllocationPeriod]) -> list[AllocationPeriod]:
        aggregated = aggregate_multi_role_allocations(allocations)
        merged = merge_consecutive_periods(aggregated)
        return assign_allocation_ids(merged, self._settings.identity_namespace)

    def validate_allocations(
        self,
        allocations: Sequence[AllocationPeriod],
        expected_total_hours: float,
        valid_resource_ids: Optional[Collection[str]] = None,
    ) -> ValidationResult:
        standard_week = self._settings.standard_week_hours
        results = [
            validate_required_fields(allocations, ALLOCATION_REQUIRED_FIELDS, "allocation"),
            validate_uuid_fields(allocations, ALLOCATION_UUID_FIELDS, "allocation"),
            validate_date_fields(allocations, ("start_date", "end_date"), "allocation"),
            _validate_period_order(allocations),
            validate_unique([allocation.id for allocation in allocations], "allocation ids"),
            validate_sum(
                [calculate_total_hours(allocations, standard_week)],
                expected_total_hours,
                tolerance=self._settings.validation_sum_tolerance,
                field_name="total hours",
            ),
            _over_allocation_warnings(allocations),
        ]
        if valid_resource_ids is not None:
            results.append(
                validate_foreign_keys(
                    sorted({allocation.resource_id for allocation in allocations}),
                    valid_resource_ids,
                    "resource_id",
                )
            )
        return combine_validation_results(results)

    def _gate(self, result: ValidationResult, context: str) -> None:
        if result.is_valid:
            for warning in result.warnings:
                logger.warning("%s | %s", context, warning)
            return
        for error in result.errors:
            logger.error("%s | %s", context, error)
        if self._settings.migration_fail_on_invalid:
            raise MigrationValidationError(
                f"{context}: {len(result.errors)} validation error(s)",
                result,
            )

    def run(
        self,
        rows: Sequence[Sequence[str]],
        layout: WeeklyGridLayout,
        project_name: str,
        *,
        project_id: Optional[str] = None,
        source_file: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> MigrationResult:
        namespace = self._settings.identity_namespace
        standard_week = self._settings.standard_week_hours
        resolved_project_id = project_id or generate_project_id(project_name, namespace)

        entries = self._split_strategy.apply(extract_weekly_hours(rows, layout))
        emails = sorted({entry.email for entry in entries})
        resources = [
            MigratedResource(id=generate_resource_id(email, namespace), email=email)
            for email in emails
        ]

        weekly = build_allocation_periods(
            entries,
            resolved_project_id,
            standard_week_hours=standard_week,
            namespace=namespace,
            created_by=created_by,
        )
        expected_total_hours = calculate_total_hours(weekly, standard_week)
        allocations = self.compress(weekly)

        validation = self.validate_allocations(
            allocations,
            expected_total_hours,
            valid_resource_ids={resource.id for resource in resources},
        )
        result = MigrationResult(
            project_id=resolved_project_id,
            project_name=project_name,
            resources=resources,
            allocations=allocations,
            validation=validation,
            raw_count=len(weekly),
            total_hours=expected_total_hours,
            source_file=source_file,
        )
        logger.info(
            "Migration completed | project=%s | resources=%s | raw=%s | merged=%s | "
            "reduction=%.2f | total_hours=%.2f | valid=%s",
            project_name,
            len(resources),
            result.raw_count,
            result.merged_count,
            result.reduction_percent,
            expected_total_hours,
            validation.is_valid,
        )
        self._gate(validation, f"Migration {project_name}")
        return result

    def compress_envelope(self, envelope: MigrationEnvelope) -> tuple[MigrationEnvelope, ValidationResult]:
        """Aggregate, merge, and re-identify the allocations in an envelope."""

        gate = validate_required_fields(envelope.entities, ENTITY_REQUIRED_FIELDS, "entity")
        if gate.is_valid:
            gate = combine_validation_results(
                [
                    validate_date_fields(envelope.entities, ("start_date", "end_date"), "entity"),
                    validate_numeric_fields(envelope.entities, ("percent_allocation",), "entity"),
                ]
            )
        if not gate.is_valid:
            self._gate(gate, "Envelope input")
            return envelope, gate

        standard_week = self._settings.standard_week_hours
        source = [AllocationPeriod.from_dict(entity) for entity in envelope.entities]
        expected_total_hours = calculate_total_hours(source, standard_week)
        allocations = self.compress(source)
        validation = self.validate_allocations(allocations, expected_total_hours)

        metadata: dict[str, Any] = dict(envelope.metadata)
        metadata.update(
            {
                "generated_at": datetime.now(timezone.utc).isoformat(),
                "raw_allocations": len(source),
                "total_allocations": len(allocations),
                "reduction_percent": reduction_percent(len(source), len(allocations)),
                "total_hours": expected_total_hours,
                "is_valid": validation.is_valid,
            }
        )
        logger.info(
            "Envelope compressed | input=%s | output=%s | reduction=%.2f",
            len(source),
            len(allocations),
            metadata["reduction_percent"],
        )
        self._gate(validation, "Envelope output")
        return (
            MigrationEnvelope(
                entities=[allocation.to_dict() for allocation in allocations],
                metadata=metadata,
            ),
            validation,
        )
