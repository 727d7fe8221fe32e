"""Weekly-hours grid extraction from an already-parsed 2-D string array.

The grid has one header row whose week columns hold week-start dates
(``M/D/YYYY``) and one data row per person and role. Which column holds the
email, the optional role, and where week columns begin is supplied by the
caller in a ``WeeklyGridLayout``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from capacity_engine.domain.models import AllocationPeriod
from capacity_engine.services.conversion import STANDARD_WEEK_HOURS, hours_to_percent
from capacity_engine.services.identity import (
    APPLICATION_NAMESPACE,
    generate_allocation_id,
    generate_resource_id,
)
from capacity_engine.utils.dates import parse_us_date_to_iso, week_end_date


class ExtractionError(Exception):
    """Raised when a grid layout does not fit the supplied rows."""


@dataclass(frozen=True)
class WeeklyGridLayout:
    email_column: int
    first_week_column: int
    role_column: Optional[int] = None
    header_row: int = 0


@dataclass(frozen=True)
class WeeklyHoursEntry:
    email: str
    role: Optional[str]
    week_start: str
    hours: float


def _text_column(frame: pd.DataFrame, column: int) -> pd.Series:
    return frame[column].fillna("").astype(str).str.strip()


def _week_columns(header: Sequence[str], first_week_column: int) -> dict[int, str]:
    columns: dict[int, str] = {}
    for index in range(first_week_column, len(header)):
        cell = str(header[index]).strip()
        if "/" in cell:
            columns[index] = parse_us_date_to_iso(cell)
    return columns


def extract_weekly_hours(
    rows: Sequence[Sequence[str]],
    layout: WeeklyGridLayout,
) -> list[WeeklyHoursEntry]:
    """Return one entry per non-zero (person, week) cell in row-major order.

    Rows without an email are skipped. Empty or non-numeric hour cells count
    as zero and produce nothing.
    """

    if len(rows) <= layout.header_row:
        raise ExtractionError(f"header row {layout.header_row} is missing")

    header = list(rows[layout.header_row])
    week_columns = _week_columns(header, layout.first_week_column)
    if not week_columns:
        raise ExtractionError("header row contains no week-start date columns")

    data_rows = [list(row) for row in rows[layout.header_row + 1 :]]
    if not data_rows:
        return []

    width = max(len(header), max(len(row) for row in data_rows))
    required = [layout.email_column, *week_columns]
    if layout.role_column is not None:
        required.append(layout.role_column)
    if max(required) >= width:
        raise ExtractionError("layout references a column beyond the grid width")

    frame = pd.DataFrame(
        [row + [""] * (width - len(row)) for row in data_rows],
        columns=list(range(width)),
    )
    emails = _text_column(frame, layout.email_column)
    frame = frame[emails != ""].reset_index(drop=True)
    emails = emails[emails != ""].tolist()
    if frame.empty:
        return []

    if layout.role_column is not None:
        roles = _text_column(frame, layout.role_column).tolist()
    else:
        roles = [""] * len(frame)

    ordered_columns = list(week_columns)
    hours = (
        frame[ordered_columns]
        .apply(lambda column: pd.to_numeric(column.astype(str).str.strip(), errors="coerce"))
        .fillna(0.0)
        .to_numpy(dtype=float)
    )

    entries: list[WeeklyHoursEntry] = []
    row_positions, column_positions = np.nonzero(hours)
    for row_position, column_position in zip(row_positions, column_positions):
        role = roles[row_position]
        entries.append(
            WeeklyHoursEntry(
                email=emails[row_position],
                role=role or None,
                week_start=week_columns[ordered_columns[column_position]],
                hours=float(hours[row_position, column_position]),
            )
        )
    return entries


def build_allocation_periods(
    entries: Iterable[WeeklyHoursEntry],
    project_id: str,
    *,
    standard_week_hours: float = STANDARD_WEEK_HOURS,
    namespace: str = APPLICATION_NAMESPACE,
    created_by: Optional[str] = None,
) -> list[AllocationPeriod]:
    periods: list[AllocationPeriod] = []
    for entry in entries:
        resource_id = generate_resource_id(entry.email, namespace)
        end_date = week_end_date(entry.week_start)
        periods.append(
            AllocationPeriod(
                resource_id=resource_id,
                project_id=project_id,
                start_date=entry.week_start,
                end_date=end_date,
                percent_allocation=hours_to_percent(entry.hours, standard_week_hours),
                hours_per_week=entry.hours,
                role=entry.role,
                notes=f"{entry.hours:g} hours/week",
                created_by=created_by,
                id=generate_allocation_id(
                    resource_id, project_id, entry.week_start, end_date, namespace
                ),
            )
        )
    return periods
