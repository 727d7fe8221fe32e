"""Data-quality checks that report findings instead of raising.

Every check returns a ``ValidationResult`` and collects all findings rather
than stopping at the first. Results combine with
``combine_validation_results``: errors and warnings concatenate, metadata
merges left to right, and the combination is valid only if every part is.
Combining nothing gives a valid result, so it is safe as a fold seed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Collection, Hashable, Iterable, Optional, Sequence

from capacity_engine.domain.models import read_field
from capacity_engine.services.identity import is_valid_uuid_v5
from capacity_engine.utils.dates import is_valid_iso_date


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    metadata: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "metadata": dict(self.metadata) if self.metadata is not None else None,
        }


def validation_success(
    warnings: Optional[list[str]] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> ValidationResult:
    return ValidationResult(is_valid=True, errors=[], warnings=list(warnings or []), metadata=metadata)


def validation_failure(
    errors: list[str],
    warnings: Optional[list[str]] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> ValidationResult:
    return ValidationResult(
        is_valid=False,
        errors=list(errors),
        warnings=list(warnings or []),
        metadata=metadata,
    )


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def validate_sum(
    values: Iterable[float],
    expected_total: float,
    tolerance: float = 0.01,
    field_name: str = "values",
) -> ValidationResult:
    actual_sum = sum(values, 0.0)
    difference = abs(actual_sum - expected_total)
    metadata = {
        "actual_sum": actual_sum,
        "expected_total": expected_total,
        "difference": difference,
    }
    if difference > tolerance:
        return validation_failure(
            [
                f"Sum validation failed for {field_name}: expected {expected_total}, "
                f"got {actual_sum} (difference: {difference:.2f})"
            ],
            metadata=metadata,
        )
    return validation_success(metadata=metadata)


def validate_required_fields(
    records: Sequence[Any],
    required_fields: Sequence[str],
    record_type: str = "record",
) -> ValidationResult:
    errors = [
        f"Record {index} ({record_type}) missing required field: {field_name}"
        for index, record in enumerate(records)
        for field_name in required_fields
        if _is_missing(read_field(record, field_name))
    ]
    if errors:
        return validation_failure(
            errors,
            metadata={"total_records": len(records), "failed_records": len(errors)},
        )
    return validation_success(metadata={"total_records": len(records)})


def validate_uuid_field(value: Any, field_name: str = "UUID") -> ValidationResult:
    if not is_valid_uuid_v5(value):
        return validation_failure([f"Invalid UUID format for {field_name}: {value}"])
    return validation_success()


def validate_uuid_fields(
    records: Sequence[Any],
    uuid_fields: Sequence[str],
    record_type: str = "record",
) -> ValidationResult:
    """Check populated UUID fields; empty values are left to required-field checks."""

    errors: list[str] = []
    for index, record in enumerate(records):
        for field_name in uuid_fields:
            value = read_field(record, field_name)
            if _is_missing(value):
                continue
            if not is_valid_uuid_v5(value):
                errors.append(
                    f"Record {index} ({record_type}): Invalid UUID for {field_name}: {value}"
                )
    if errors:
        return validation_failure(
            errors,
            metadata={"total_records": len(records), "failed_validations": len(errors)},
        )
    return validation_success(metadata={"total_records": len(records)})


def validate_date_field(value: Any, field_name: str = "date") -> ValidationResult:
    if not is_valid_iso_date(value):
        return validation_failure(
            [f"Invalid date format for {field_name}: {value}. Expected YYYY-MM-DD"]
        )
    return validation_success()


def validate_date_fields(
    records: Sequence[Any],
    date_fields: Sequence[str],
    record_type: str = "record",
) -> ValidationResult:
    errors = [
        f"Record {index} ({record_type}): Invalid date for {field_name}: "
        f"{read_field(record, field_name)}"
        for index, record in enumerate(records)
        for field_name in date_fields
        if not is_valid_iso_date(read_field(record, field_name))
    ]
    if errors:
        return validation_failure(
            errors,
            metadata={"total_records": len(records), "failed_validations": len(errors)},
        )
    return validation_success(metadata={"total_records": len(records)})


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        return not math.isnan(float(value))
    except (TypeError, ValueError):
        return False


def validate_numeric_fields(
    records: Sequence[Any],
    numeric_fields: Sequence[str],
    record_type: str = "record",
) -> ValidationResult:
    errors = [
        f"Record {index} ({record_type}): Invalid number for {field_name}: "
        f"{read_field(record, field_name)}"
        for index, record in enumerate(records)
        for field_name in numeric_fields
        if not _is_number(read_field(record, field_name))
    ]
    if errors:
        return validation_failure(
            errors,
            metadata={"total_records": len(records), "failed_validations": len(errors)},
        )
    return validation_success(metadata={"total_records": len(records)})


def validate_range(
    value: float,
    minimum: float,
    maximum: float,
    field_name: str = "value",
) -> ValidationResult:
    errors: list[str] = []
    if value < minimum:
        errors.append(f"{field_name} value {value} is below minimum {minimum}")
    if value > maximum:
        errors.append(f"{field_name} value {value} exceeds maximum {maximum}")

    metadata = {"value": value, "min": minimum, "max": maximum}
    if errors:
        return validation_failure(errors, metadata=metadata)
    return validation_success(metadata=metadata)


def validate_unique(values: Iterable[Hashable], field_name: str = "values") -> ValidationResult:
    seen: set[Hashable] = set()
    duplicates: list[Hashable] = []
    total = 0
    for value in values:
        total += 1
        if value in seen and value not in duplicates:
            duplicates.append(value)
        seen.add(value)

    if duplicates:
        duplicate_list = ", ".join(str(value) for value in duplicates)
        return validation_failure(
            [f"Duplicate values found in {field_name}: {duplicate_list}"],
            metadata={"duplicate_count": len(duplicates), "duplicate_values": duplicates},
        )
    return validation_success(metadata={"total_values": total})


def validate_foreign_keys(
    foreign_keys: Sequence[str],
    valid_ids: Collection[str],
    field_name: str = "foreign_key",
) -> ValidationResult:
    invalid = [key for key in foreign_keys if key not in valid_ids]
    if invalid:
        return validation_failure(
            [f"Invalid foreign key references for {field_name}: {', '.join(invalid)}"],
            metadata={"invalid_count": len(invalid), "invalid_keys": invalid},
        )
    return validation_success(metadata={"total_references": len(foreign_keys)})


def validate_count(
    actual_count: int,
    expected_count: int,
    item_name: str = "items",
) -> ValidationResult:
    if actual_count != expected_count:
        return validation_failure(
            [f"Count mismatch for {item_name}: expected {expected_count}, got {actual_count}"],
            metadata={"actual_count": actual_count, "expected_count": expected_count},
        )
    return validation_success(metadata={"count": actual_count})


def combine_validation_results(results: Iterable[ValidationResult]) -> ValidationResult:
    errors: list[str] = []
    warnings: list[str] = []
    metadata: dict[str, Any] = {}
    all_valid = True

    for result in results:
        all_valid = all_valid and result.is_valid
        errors.extend(result.errors)
        warnings.extend(result.warnings)
        if result.metadata:
            metadata.update(result.metadata)

    return ValidationResult(
        is_valid=all_valid and not errors,
        errors=errors,
        warnings=warnings,
        metadata=metadata,
    )
