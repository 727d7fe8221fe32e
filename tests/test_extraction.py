from __future__ import annotations

import pytest

from capacity_engine.services.extraction import (
    ExtractionError,
    WeeklyGridLayout,
    WeeklyHoursEntry,
    build_allocation_periods,
    extract_weekly_hours,
)
from capacity_engine.services.identity import (
    generate_allocation_id,
    generate_resource_id,
    is_valid_uuid_v5,
)


LAYOUT = WeeklyGridLayout(email_column=1, first_week_column=3, role_column=2)


def _build_grid() -> list[list[str]]:
    return [
        ["Name", "Email", "Role", "1/1/2024", "1/8/2024", "Total"],
        ["Ann", "ann@example.com", "Developer", "20", "8", "28"],
        ["", "", "", "5", "5", "10"],
        ["Bob", " bob@example.com ", "QA", "10", "n/a", "10"],
        ["Cy", "cy@example.com"],
    ]


# --- extraction ---

def test_non_zero_cells_in_row_major_order() -> None:
    entries = extract_weekly_hours(_build_grid(), LAYOUT)

    assert entries == [
        WeeklyHoursEntry(email="ann@example.com", role="Developer", week_start="2024-01-01", hours=20.0),
        WeeklyHoursEntry(email="ann@example.com", role="Developer", week_start="2024-01-08", hours=8.0),
        WeeklyHoursEntry(email="bob@example.com", role="QA", week_start="2024-01-01", hours=10.0),
    ]


def test_layout_without_role_column() -> None:
    layout = WeeklyGridLayout(email_column=1, first_week_column=3)

    entries = extract_weekly_hours(_build_grid(), layout)

    assert all(entry.role is None for entry in entries)


def test_header_only_grid_yields_nothing() -> None:
    assert extract_weekly_hours(_build_grid()[:1], LAYOUT) == []


def test_header_row_offset() -> None:
    grid = [["Project Apollo"], *_build_grid()]

    entries = extract_weekly_hours(grid, WeeklyGridLayout(email_column=1, first_week_column=3, header_row=1))

    assert len(entries) == 3


def test_missing_header_raises() -> None:
    with pytest.raises(ExtractionError):
        extract_weekly_hours([], LAYOUT)


def test_header_without_week_columns_raises() -> None:
    with pytest.raises(ExtractionError):
        extract_weekly_hours([["Email", "Role", "Total"], ["a@x.com", "QA", "1"]], LAYOUT)


def test_column_beyond_grid_raises() -> None:
    with pytest.raises(ExtractionError):
        extract_weekly_hours(_build_grid(), WeeklyGridLayout(email_column=10, first_week_column=3))


# --- allocation periods ---

def test_entries_become_weekly_allocation_periods() -> None:
    entry = WeeklyHoursEntry(email="ann@example.com", role="Developer", week_start="2024-01-01", hours=20.0)

    (period,) = build_allocation_periods([entry], "project-1", created_by="importer")

    resource_id = generate_resource_id("ann@example.com")
    assert period.resource_id == resource_id
    assert period.start_date == "2024-01-01"
    assert period.end_date == "2024-01-07"
    assert period.percent_allocation == 50.0
    assert period.hours_per_week == 20.0
    assert period.notes == "20 hours/week"
    assert period.created_by == "importer"
    assert period.id == generate_allocation_id(resource_id, "project-1", "2024-01-01", "2024-01-07")
    assert is_valid_uuid_v5(period.id)


def test_custom_standard_week() -> None:
    entry = WeeklyHoursEntry(email="ann@example.com", role=None, week_start="2024-01-01", hours=7.5)

    (period,) = build_allocation_periods([entry], "project-1", standard_week_hours=37.5)

    assert period.percent_allocation == 20.0
    assert period.notes == "7.5 hours/week"
