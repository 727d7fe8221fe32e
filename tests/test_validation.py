from __future__ import annotations

import pytest

from capacity_engine.services.identity import generate_resource_id
from capacity_engine.services.validation import (
    combine_validation_results,
    validate_count,
    validate_date_field,
    validate_date_fields,
    validate_foreign_keys,
    validate_numeric_fields,
    validate_range,
    validate_required_fields,
    validate_sum,
    validate_unique,
    validate_uuid_field,
    validate_uuid_fields,
    validation_failure,
    validation_success,
)


# --- sums ---

def test_sum_within_tolerance_passes() -> None:
    result = validate_sum([10.0, 20.005], 30.0)

    assert result.is_valid
    assert result.metadata["actual_sum"] == pytest.approx(30.005)


def test_sum_outside_tolerance_fails() -> None:
    result = validate_sum([10.0, 20.5], 30.0, field_name="hours")

    assert not result.is_valid
    assert result.errors == [
        "Sum validation failed for hours: expected 30.0, got 30.5 (difference: 0.50)"
    ]
    assert result.metadata["difference"] == pytest.approx(0.5)


# --- required fields ---

def test_required_fields_collects_every_gap() -> None:
    records = [{"a": 1, "b": ""}, {"a": None, "b": 2}, {"a": 0, "b": 3}]

    result = validate_required_fields(records, ("a", "b"), "row")

    assert not result.is_valid
    assert result.errors == [
        "Record 0 (row) missing required field: b",
        "Record 1 (row) missing required field: a",
    ]
    assert result.metadata == {"total_records": 3, "failed_records": 2}


def test_required_fields_pass() -> None:
    assert validate_required_fields([{"a": 1}], ("a",)).is_valid


# --- uuids ---

def test_uuid_fields_skip_empty_values() -> None:
    valid = generate_resource_id("ann@example.com")
    records = [{"id": valid, "parent": None}, {"id": "bogus", "parent": ""}]

    result = validate_uuid_fields(records, ("id", "parent"), "entity")

    assert not result.is_valid
    assert result.errors == ["Record 1 (entity): Invalid UUID for id: bogus"]


def test_single_uuid_field() -> None:
    assert validate_uuid_field(generate_resource_id("ann@example.com")).is_valid
    assert validate_uuid_field("bogus", "resource_id").errors == [
        "Invalid UUID format for resource_id: bogus"
    ]


# --- dates ---

def test_date_fields_require_real_iso_dates() -> None:
    records = [
        {"start": "2024-02-29", "end": "2024-02-30"},
        {"start": "2024-1-5", "end": "2024-03-01"},
    ]

    result = validate_date_fields(records, ("start", "end"), "allocation")

    assert len(result.errors) == 2
    assert result.errors[0] == "Record 0 (allocation): Invalid date for end: 2024-02-30"


def test_single_date_field() -> None:
    assert validate_date_field("2024-01-01").is_valid
    assert not validate_date_field("01/01/2024").is_valid


# --- numbers ---

def test_numeric_fields_reject_text_blanks_and_booleans() -> None:
    records = [
        {"percent": 50},
        {"percent": "37.5"},
        {"percent": "half"},
        {"percent": None},
        {"percent": True},
        {"percent": float("nan")},
    ]

    result = validate_numeric_fields(records, ("percent",), "allocation")

    assert not result.is_valid
    assert result.errors == [
        "Record 2 (allocation): Invalid number for percent: half",
        "Record 3 (allocation): Invalid number for percent: None",
        "Record 4 (allocation): Invalid number for percent: True",
        "Record 5 (allocation): Invalid number for percent: nan",
    ]
    assert validate_numeric_fields(records[:2], ("percent",)).is_valid


# --- ranges and counts ---

def test_range_bounds_are_inclusive() -> None:
    assert validate_range(0.0, 0.0, 100.0).is_valid
    assert validate_range(100.0, 0.0, 100.0).is_valid
    assert validate_range(-1.0, 0.0, 100.0, "percent").errors == ["percent value -1.0 is below minimum 0.0"]
    assert validate_range(101.0, 0.0, 100.0, "percent").errors == ["percent value 101.0 exceeds maximum 100.0"]


def test_count_mismatch() -> None:
    assert validate_count(3, 3).is_valid
    assert validate_count(2, 3, "resources").errors == ["Count mismatch for resources: expected 3, got 2"]


# --- uniqueness and references ---

def test_duplicates_reported_once_in_first_seen_order() -> None:
    result = validate_unique(["a", "b", "a", "c", "b", "a"], "ids")

    assert not result.is_valid
    assert result.errors == ["Duplicate values found in ids: a, b"]
    assert result.metadata["duplicate_values"] == ["a", "b"]
    assert result.metadata["duplicate_count"] == 2


def test_unique_values_pass() -> None:
    result = validate_unique(["a", "b", "c"])

    assert result.is_valid
    assert result.metadata == {"total_values": 3}


def test_foreign_keys() -> None:
    assert validate_foreign_keys(["r1", "r2"], {"r1", "r2", "r3"}).is_valid

    result = validate_foreign_keys(["r1", "r9"], {"r1"}, "resource_id")
    assert result.errors == ["Invalid foreign key references for resource_id: r9"]
    assert result.metadata["invalid_keys"] == ["r9"]


# --- combination ---

def test_combining_nothing_is_valid() -> None:
    combined = combine_validation_results([])

    assert combined.is_valid
    assert combined.errors == []
    assert combined.metadata == {}


def test_combination_concatenates_findings() -> None:
    combined = combine_validation_results(
        [
            validation_success(warnings=["w1"], metadata={"a": 1}),
            validation_failure(["e1"], metadata={"a": 2, "b": 3}),
            validation_success(warnings=["w2"]),
        ]
    )

    assert not combined.is_valid
    assert combined.errors == ["e1"]
    assert combined.warnings == ["w1", "w2"]
    assert combined.metadata == {"a": 2, "b": 3}


def test_to_dict() -> None:
    payload = validation_failure(["e1"], warnings=["w1"]).to_dict()

    assert payload == {"is_valid": False, "errors": ["e1"], "warnings": ["w1"], "metadata": None}
