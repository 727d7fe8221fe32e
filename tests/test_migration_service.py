from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from capacity_engine.domain.interchange import MigrationEnvelope
from capacity_engine.domain.models import AllocationPeriod
from capacity_engine.services.extraction import WeeklyGridLayout
from capacity_engine.services.identity import (
    generate_allocation_id,
    generate_project_id,
    generate_resource_id,
    is_valid_uuid_v5,
)
from capacity_engine.services.migration_service import (
    MigrationService,
    MigrationValidationError,
    assign_allocation_ids,
)
from capacity_engine.services.split_strategy import AllocationSplitStrategy
from capacity_engine.utils.config import get_settings


LAYOUT = WeeklyGridLayout(email_column=0, role_column=1, first_week_column=2)
ANN = generate_resource_id("ann@example.com")
BOB = generate_resource_id("bob@example.com")
APOLLO = generate_project_id("Apollo")


def _build_test_settings(**overrides):
    return replace(get_settings(), **overrides)


def _build_grid() -> list[list[str]]:
    return [
        ["Email", "Role", "1/1/2024", "1/8/2024", "1/15/2024"],
        ["ann@example.com", "Developer", "20", "20", "20"],
        ["ann@example.com", "QA", "10", "10", "10"],
        ["bob@example.com", "Developer", "40", "", "40"],
    ]


def _weekly(resource_id: str, start: str, end: str, percent: float = 50.0) -> AllocationPeriod:
    return AllocationPeriod(
        resource_id=resource_id,
        project_id=APOLLO,
        start_date=start,
        end_date=end,
        percent_allocation=percent,
        id=generate_allocation_id(resource_id, APOLLO, start, end),
    )


# --- grid pipeline ---

def test_pipeline_compresses_and_identifies() -> None:
    service = MigrationService(settings=_build_test_settings())

    result = service.run(_build_grid(), LAYOUT, "Apollo", source_file="apollo.csv")

    assert result.project_id == APOLLO
    assert [resource.email for resource in result.resources] == ["ann@example.com", "bob@example.com"]
    assert result.raw_count == 8
    assert result.merged_count == 3
    assert result.reduction_percent == 62.5
    assert result.total_hours == pytest.approx(170.0)
    assert result.validation.is_valid

    ann = [allocation for allocation in result.allocations if allocation.resource_id == ANN]
    assert len(ann) == 1
    assert (ann[0].start_date, ann[0].end_date) == ("2024-01-01", "2024-01-21")
    assert ann[0].percent_allocation == 75.0
    assert ann[0].role == "Developer, QA"
    assert ann[0].id == generate_allocation_id(ANN, APOLLO, "2024-01-01", "2024-01-21")

    bob = [allocation for allocation in result.allocations if allocation.resource_id == BOB]
    assert [(allocation.start_date, allocation.end_date) for allocation in bob] == [
        ("2024-01-01", "2024-01-07"),
        ("2024-01-15", "2024-01-21"),
    ]


def test_pipeline_is_deterministic() -> None:
    service = MigrationService(settings=_build_test_settings())

    first = service.run(_build_grid(), LAYOUT, "Apollo")
    second = service.run(_build_grid(), LAYOUT, "Apollo")

    assert [allocation.to_dict() for allocation in first.allocations] == [
        allocation.to_dict() for allocation in second.allocations
    ]
    assert all(is_valid_uuid_v5(allocation.id) for allocation in first.allocations)


def test_explicit_project_id_is_used() -> None:
    project_id = generate_project_id("Apollo Phase 2")
    service = MigrationService(settings=_build_test_settings())

    result = service.run(_build_grid(), LAYOUT, "Apollo", project_id=project_id)

    assert {allocation.project_id for allocation in result.allocations} == {project_id}


def test_split_strategy_reshapes_entries() -> None:
    strategy = AllocationSplitStrategy.from_table(
        {
            "rules": [
                {
                    "name": "bob shares with cy",
                    "match": {"emails": ["bob@example.com"]},
                    "policy": {"type": "divide_equally", "target_emails": ["bob@example.com", "cy@example.com"]},
                }
            ]
        }
    )
    service = MigrationService(settings=_build_test_settings(), split_strategy=strategy)

    result = service.run(_build_grid(), LAYOUT, "Apollo")

    assert [resource.email for resource in result.resources] == [
        "ann@example.com",
        "bob@example.com",
        "cy@example.com",
    ]
    assert result.total_hours == pytest.approx(170.0)
    assert result.validation.is_valid


def test_envelope_metadata(tmp_path) -> None:
    service = MigrationService(settings=_build_test_settings())
    result = service.run(_build_grid(), LAYOUT, "Apollo", source_file="apollo.csv")
    generated_at = datetime(2024, 2, 1, tzinfo=timezone.utc)

    document = result.to_envelope(generated_at).to_document()
    output_path = tmp_path / "allocations.json"
    output_path.write_text(json.dumps(document), encoding="utf-8")
    reloaded = json.loads(output_path.read_text(encoding="utf-8"))

    assert len(reloaded["entities"]) == 3
    assert reloaded["_metadata"] == {
        "source_file": "apollo.csv",
        "generated_at": "2024-02-01T00:00:00+00:00",
        "project_id": APOLLO,
        "project_name": "Apollo",
        "raw_allocations": 8,
        "total_allocations": 3,
        "reduction_percent": 62.5,
        "total_hours": 170.0,
        "is_valid": True,
    }
    resources = result.resources_envelope(generated_at).to_document()
    assert resources["_metadata"]["total_resources"] == 2
    assert resources["entities"][0] == {"id": ANN, "email": "ann@example.com"}


# --- validation ---

def test_validation_reports_structural_errors() -> None:
    service = MigrationService(settings=_build_test_settings())
    broken = AllocationPeriod(
        resource_id="not-a-uuid",
        project_id=APOLLO,
        start_date="2024-01-10",
        end_date="2024-01-01",
        percent_allocation=50.0,
    )

    result = service.validate_allocations([broken], expected_total_hours=0.0)

    assert not result.is_valid
    assert "Record 0 (allocation) missing required field: id" in result.errors
    assert "Record 0 (allocation): Invalid UUID for resource_id: not-a-uuid" in result.errors
    assert any("is after end_date" in error for error in result.errors)


def test_validation_detects_hour_drift() -> None:
    service = MigrationService(settings=_build_test_settings())
    weekly = [_weekly(ANN, "2024-01-01", "2024-01-07")]

    result = service.validate_allocations(weekly, expected_total_hours=100.0)

    assert not result.is_valid
    assert result.errors[0].startswith("Sum validation failed for total hours")


def test_over_allocation_is_a_warning() -> None:
    service = MigrationService(settings=_build_test_settings())
    weekly = [_weekly(ANN, "2024-01-01", "2024-01-07", percent=150.0)]

    result = service.validate_allocations(weekly, expected_total_hours=60.0)

    assert result.is_valid
    assert len(result.warnings) == 1
    assert "150.0% exceeds 100%" in result.warnings[0]


def test_duplicate_ids_are_errors() -> None:
    service = MigrationService(settings=_build_test_settings())
    weekly = [_weekly(ANN, "2024-01-01", "2024-01-07")] * 2

    result = service.validate_allocations(weekly, expected_total_hours=40.0)

    assert not result.is_valid
    assert any(error.startswith("Duplicate values found in allocation ids") for error in result.errors)


def test_unknown_resource_reference() -> None:
    service = MigrationService(settings=_build_test_settings())
    weekly = [_weekly(ANN, "2024-01-01", "2024-01-07")]

    result = service.validate_allocations(weekly, expected_total_hours=20.0, valid_resource_ids={BOB})

    assert not result.is_valid
    assert result.errors == [f"Invalid foreign key references for resource_id: {ANN}"]


# --- envelope compression ---

def _build_envelope(*allocations: AllocationPeriod) -> MigrationEnvelope:
    return MigrationEnvelope.model_validate(
        {
            "entities": [allocation.to_dict() for allocation in allocations],
            "_metadata": {"source_file": "legacy.json"},
        }
    )


def test_compress_envelope_merges_weeks() -> None:
    service = MigrationService(settings=_build_test_settings())
    envelope = _build_envelope(
        _weekly(ANN, "2024-01-08", "2024-01-14"),
        _weekly(ANN, "2024-01-01", "2024-01-07"),
    )

    compressed, validation = service.compress_envelope(envelope)

    assert validation.is_valid
    assert len(compressed.entities) == 1
    assert compressed.entities[0]["start_date"] == "2024-01-01"
    assert compressed.entities[0]["end_date"] == "2024-01-14"
    assert compressed.entities[0]["id"] == generate_allocation_id(ANN, APOLLO, "2024-01-01", "2024-01-14")
    assert compressed.metadata["source_file"] == "legacy.json"
    assert compressed.metadata["raw_allocations"] == 2
    assert compressed.metadata["total_allocations"] == 1
    assert compressed.metadata["reduction_percent"] == 50.0
    assert compressed.metadata["total_hours"] == 40.0


def test_compress_envelope_rejects_incomplete_entities() -> None:
    service = MigrationService(settings=_build_test_settings(migration_fail_on_invalid=True))
    envelope = MigrationEnvelope(entities=[{"resource_id": ANN, "project_id": APOLLO}])

    with pytest.raises(MigrationValidationError) as exc_info:
        service.compress_envelope(envelope)

    assert "Record 0 (entity) missing required field: start_date" in exc_info.value.result.errors


def test_invalid_input_is_returned_when_not_failing_fast() -> None:
    service = MigrationService(settings=_build_test_settings(migration_fail_on_invalid=False))
    envelope = MigrationEnvelope(entities=[{"resource_id": ANN, "project_id": APOLLO}])

    returned, validation = service.compress_envelope(envelope)

    assert returned is envelope
    assert not validation.is_valid


def test_impossible_entity_date_is_reported_not_raised() -> None:
    service = MigrationService(settings=_build_test_settings(migration_fail_on_invalid=False))
    envelope = _build_envelope(
        _weekly(ANN, "2024-01-01", "2024-01-07"),
        _weekly(ANN, "2024-02-30", "2024-03-06"),
    )

    returned, validation = service.compress_envelope(envelope)

    assert returned is envelope
    assert not validation.is_valid
    assert validation.errors == ["Record 1 (entity): Invalid date for start_date: 2024-02-30"]


def test_non_numeric_percent_is_reported_not_raised() -> None:
    service = MigrationService(settings=_build_test_settings(migration_fail_on_invalid=False))
    entity = _weekly(ANN, "2024-01-01", "2024-01-07").to_dict()
    entity["percent_allocation"] = "half"

    returned, validation = service.compress_envelope(MigrationEnvelope(entities=[entity]))

    assert returned.entities == [entity]
    assert validation.errors == ["Record 0 (entity): Invalid number for percent_allocation: half"]


def test_malformed_entity_fails_fast_when_configured() -> None:
    service = MigrationService(settings=_build_test_settings(migration_fail_on_invalid=True))
    envelope = _build_envelope(_weekly(ANN, "2024-01-01", "01/07/2024"))

    with pytest.raises(MigrationValidationError) as exc_info:
        service.compress_envelope(envelope)

    assert exc_info.value.result.errors == [
        "Record 0 (entity): Invalid date for end_date: 01/07/2024"
    ]


def test_assign_allocation_ids_replaces_ids() -> None:
    allocation = replace(_weekly(ANN, "2024-01-01", "2024-01-07"), id=None)

    (identified,) = assign_allocation_ids([allocation], get_settings().identity_namespace)

    assert identified.id == generate_allocation_id(ANN, APOLLO, "2024-01-01", "2024-01-07")
    assert allocation.id is None
